from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    app_title: str = 'Access Gate'
    app_description: str = (
        'Role-gated access and request-to-join workflow'
    )
    database_url: str = Field(
        'sqlite+aiosqlite:///./access_gate.db',
        json_schema_extra={'env': 'DATABASE_URL'}
    )
    test_database_url: str = Field(
        'sqlite+aiosqlite:///./test_access_gate.db',
        json_schema_extra={'env': 'TEST_DATABASE_URL'}
    )
    database_echo: bool = False

    jwt_secret: str = 'change-me'
    jwt_algorithm: str = 'HS256'
    session_ttl_minutes: int = 60 * 24 * 7
    auth_cookie_name: str = 'access_token'
    auth_cookie_secure: bool = False
    identity_provider_secret: Optional[str] = Field(
        None,
        json_schema_extra={'env': 'IDENTITY_PROVIDER_SECRET'}
    )

    access_request_allowed_email_domains: str = ''
    admin_notify_email: Optional[str] = Field(
        None,
        json_schema_extra={'env': 'ADMIN_NOTIFY_EMAIL'}
    )
    app_url: str = Field(
        'http://localhost:3000',
        json_schema_extra={'env': 'APP_URL'}
    )

    email_from: str = 'Access Gate <onboarding@resend.dev>'
    resend_api_key: Optional[str] = None
    resend_api_url: str = 'https://api.resend.com/emails'
    smtp_server: Optional[str] = None
    smtp_port: int = 465
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None

    admin_email: Optional[str] = None
    admin_name: str = 'Admin User'

    cors_origins: list[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    def get_database_url(self, test: bool = False) -> str:
        return self.test_database_url if test else self.database_url

    def get_allowed_email_domains(self) -> list[str]:
        return [
            domain.strip().lower()
            for domain in self.access_request_allowed_email_domains.split(',')
            if domain.strip()
        ]

    def get_admin_notify_email(self) -> Optional[str]:
        value = (self.admin_notify_email or '').strip()
        return value or None

    def build_url(self, path: str) -> str:
        base = self.app_url.rstrip('/')
        return f'{base}/{path.lstrip("/")}'


settings = Settings()
