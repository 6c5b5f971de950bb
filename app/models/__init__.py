from .user import User
from .store import Store, PendingStore, StoreStatus
from .message import Message
from .ticket import Ticket, CustomerTicket
from .appearance import ChatbotAppearance
from .analysis import ConversationAnalysis

__all__ = [
    "User", "Store", "PendingStore", "StoreStatus", "Message", "Ticket",
    "CustomerTicket", "ChatbotAppearance", "ConversationAnalysis",
]
