# noqa: E402
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

# In case pytest tests/ -v -s is run, it will only read .env.test
if "pytest" in sys.modules or os.environ.get("TESTING") == "True":
    test_env_path = Path(__file__).parent.parent / "tests" / ".env.test"
    if test_env_path.exists():
        load_dotenv(test_env_path, override=True)
        print(f" Loaded test environment from: {test_env_path}")
else:
    load_dotenv()

# Determine if we're in testing mode
TESTING = os.environ.get("TESTING") == "True" or "pytest" in sys.modules
FLASK_ENV = os.environ.get("FLASK_ENV")


def is_production_database(db_url: str) -> bool:
    """Check if a database URL appears to be production."""
    if not db_url:
        return False

    dangerous_patterns = [
        "production",
        "live",
        "prod.",
        "amazonaws.com",
        "azure.com",
        "rlwy.net",
    ]

    for pattern in dangerous_patterns:
        if pattern in db_url.lower():
            return True
    return False


def mask_database_url(db_url: str) -> str:
    """Hide credentials before a URL is printed."""
    if db_url and "@" in db_url:
        protocol = db_url.split("://")[0]
        host_db = db_url.rsplit("@", 1)[1]
        return f"{protocol}://****:****@{host_db}"
    return db_url or "not configured"


if TESTING or FLASK_ENV == "testing":
    url = os.environ.get("DATABASE_TEST_URL", "sqlite:///:memory:")

    # CRITICAL SAFETY CHECK: Make sure we're not using production
    if is_production_database(url):
        print(" CRITICAL ERROR: Test is trying to use production database!")
        print(f" Database URL contains production patterns: {mask_database_url(url)}")
        sys.exit(1)

    print(" TESTING MODE: Using test database")

else:
    url = os.environ.get("DATABASE_URL")

    if not url:
        # In development, fall back to a local SQLite file
        if FLASK_ENV == "development":
            url = "sqlite:///gym_dev.db"
            print("  DATABASE_URL not set, using local development database")
        else:
            raise ValueError(
                "DATABASE_URL environment variable is required for production"
            )

    print(f" {FLASK_ENV or 'PRODUCTION'} MODE: Using main database")

# Fix MySQL URL format if needed
if url.startswith("mysql://"):
    url = url.replace("mysql://", "mysql+pymysql://", 1)

print("\n" + "=" * 70)
print("CONFIGURATION SUMMARY")
print("=" * 70)
print(f"Environment: {FLASK_ENV or 'production'}")
print(f"Testing Mode: {TESTING}")
print(f"Database: {mask_database_url(url)}")
print("=" * 70 + "\n")


class Config:
    SQLALCHEMY_DATABASE_URI = url
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "supersecretdevkey123")
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", 1))

    TESTING = TESTING

    # Billing
    INVOICE_CURRENCY = os.environ.get("INVOICE_CURRENCY", "INR")
    INVOICE_DUE_DAYS = int(os.environ.get("INVOICE_DUE_DAYS", 7))
    EXPIRY_WINDOW_DAYS = int(os.environ.get("EXPIRY_WINDOW_DAYS", 7))

    # Background jobs and notifications
    SCHEDULER_ENABLED = os.environ.get("SCHEDULER_ENABLED") == "True" and not TESTING
    RESEND_FROM_EMAIL = os.environ.get("RESEND_FROM_EMAIL", "onboarding@resend.dev")

    @property
    def is_safe_for_testing(self):
        """Double-check that we're not using production database in tests."""
        if self.TESTING:
            return not is_production_database(self.SQLALCHEMY_DATABASE_URI)
        return True
