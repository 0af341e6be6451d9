from datetime import datetime
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    # Supabase settings
    supabase_url: str = ''
    supabase_key: str = ''
    messages_table: str = 'messages'

    # Twilio settings
    twilio_account_sid: str = ''
    twilio_auth_token: str = ''
    twilio_phone_number: str = ''

    # Where question notifications go; inbound replies must come from here
    sms_recipient: str = ''
    sms_timezone: str = 'Australia/Sydney'

    # Relay endpoint the chat client calls after writing a question
    relay_url: str = 'http://localhost:8000/api/messages-post'

    launch_date: datetime = datetime(2025, 7, 14)
    feed_reload_delay: float = 5.0

    log_level: str = 'INFO'

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def twilio_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)

def get_settings() -> Settings:
    return Settings()
