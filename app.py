import logging
import sys

from dotenv import load_dotenv

from api.routes import create_app
from api.services.sms import SMSService
from api.services.storage import StorageService
from lib.config import Settings, get_settings
from lib.database import create_storage_client
from lib.twilio_client import TwilioClient

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
        force=True  # Ensure our config takes precedence
    )


def build_app(settings: Settings):
    """Construct every client once and hand them to the app."""
    supabase = create_storage_client(settings)
    storage = StorageService(supabase, table=settings.messages_table) if supabase else None

    sms_service = SMSService(
        twilio_client=TwilioClient.from_settings(settings),
        phone_number=settings.twilio_phone_number,
        recipient=settings.sms_recipient,
        timezone=settings.sms_timezone
    )

    logger.info("All services initialized successfully")
    return create_app(settings, storage, sms_service)


settings = get_settings()
configure_logging(settings.log_level)
app = build_app(settings)

if __name__ == "__main__":
    # Log startup
    logger.info("Starting Flask server...")
    app.run(debug=True, port=8000)
