from .config import WhatsAppConfig
from .client import send_whatsapp_text
from .channel import WhatsAppChannel
from .webhook import handle_webhook
