import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///ezrent.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@ezrent.local")

    # Pricing: calendar used for the same-day rule (PH has no DST)
    RENTAL_UTC_OFFSET_HOURS = int(os.getenv("RENTAL_UTC_OFFSET_HOURS", "8"))
    DEFAULT_DELIVERY_CHARGE = os.getenv("DEFAULT_DELIVERY_CHARGE", "25.00")

    # Delivery fee
    DELIVERY_RATE_PER_KM = os.getenv("DELIVERY_RATE_PER_KM", "10")
    GEOCODING_URL = os.getenv("GEOCODING_URL", "https://nominatim.openstreetmap.org/search")
    ROUTING_URL = os.getenv("ROUTING_URL", "https://router.project-osrm.org/route/v1/driving")
    GEO_TIMEOUT_SECONDS = float(os.getenv("GEO_TIMEOUT_SECONDS", "10"))
    GEO_USER_AGENT = os.getenv("GEO_USER_AGENT", "ezrent-delivery/1.0")
    DELIVERY_DEFAULT_TOWN = os.getenv("DELIVERY_DEFAULT_TOWN", "")
    DELIVERY_DEFAULT_PROVINCE = os.getenv("DELIVERY_DEFAULT_PROVINCE", "")
    DELIVERY_COUNTRY = os.getenv("DELIVERY_COUNTRY", "Philippines")

    # PayMongo
    PAYMONGO_SECRET_KEY = os.getenv("PAYMONGO_SECRET_KEY", "")
    PAYMONGO_API_URL = os.getenv("PAYMONGO_API_URL", "https://api.paymongo.com/v1")
    PAYMENT_SUCCESS_URL = os.getenv("PAYMENT_SUCCESS_URL", "http://localhost:8081/payment-success")
    PAYMENT_CANCEL_URL = os.getenv("PAYMENT_CANCEL_URL", "http://localhost:8081/payment-cancel")
    PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "30"))

    # Rental monitor job
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "1") == "1"
    RENTAL_MONITOR_INTERVAL_MINUTES = int(os.getenv("RENTAL_MONITOR_INTERVAL_MINUTES", "10"))
    DUE_SOON_HOURS = int(os.getenv("DUE_SOON_HOURS", "24"))

    # Owner payment-pending notice
    OWNER_COMMISSION_RATE = os.getenv("OWNER_COMMISSION_RATE", "0.30")
    PAYMENT_DEADLINE_HOURS = int(os.getenv("PAYMENT_DEADLINE_HOURS", "24"))

    # Notification log rows of settled rentals older than this are purged on cleanup
    NOTIFICATION_RETENTION_DAYS = int(os.getenv("NOTIFICATION_RETENTION_DAYS", "30"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    MAIL_SUPPRESS_SEND = True
    SCHEDULER_ENABLED = False
    PAYMONGO_SECRET_KEY = "sk_test_dummy"
