from pydantic import BaseModel
from typing import List

class WidgetAppearance(BaseModel):
    primary_color: str
    button_bg_color: str
    button_text_color: str
    button_shape: str
    button_position: str
    header_title: str
    welcome_message: str
    conversation_starters: List[str]
    logo_url: str
    show_logo: bool

class WidgetBootstrapResponse(BaseModel):
    storeUrl: str
    widgetToken: str
    appearance: WidgetAppearance
