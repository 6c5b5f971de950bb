from pydantic import BaseModel, ConfigDict
from typing import Any, List, Optional

DEFAULT_PRIMARY_COLOR = "#1d306d"
DEFAULT_HEADER_TITLE = "Quell AI"
DEFAULT_WELCOME_MESSAGE = "Hi! 👋 I am Quell, your personal shopping assistant. What are you looking for today?"
DEFAULT_BUTTON_TEXT_COLOR = "#ffffff"
DEFAULT_BUTTON_SHAPE = "circle"
DEFAULT_BUTTON_POSITION = "right"
DEFAULT_STARTERS = ["Browse Products", "Track My Order", "Customer Support"]

class AppearanceSettings(BaseModel):
    store_url: str
    primary_color: str = DEFAULT_PRIMARY_COLOR
    header_title: str = DEFAULT_HEADER_TITLE
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    conversation_starters: List[str] = DEFAULT_STARTERS
    button_bg_color: Optional[str] = None
    button_text_color: str = DEFAULT_BUTTON_TEXT_COLOR
    button_shape: str = DEFAULT_BUTTON_SHAPE
    button_position: str = DEFAULT_BUTTON_POSITION
    logo_url: Optional[str] = None
    show_logo: bool = False

class AppearanceUpdate(BaseModel):
    primary_color: Optional[str] = None
    header_title: Optional[str] = None
    welcome_message: Optional[str] = None
    conversation_starters: Optional[Any] = None
    button_bg_color: Optional[str] = None
    button_text_color: Optional[str] = None
    button_shape: Optional[str] = None
    button_position: Optional[str] = None
    logo_url: Optional[str] = None
    show_logo: Optional[bool] = False

    model_config = ConfigDict(extra="ignore")
