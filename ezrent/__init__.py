from flask import Flask, jsonify
from ezrent.config import Config
from ezrent.extensions import db, migrate, mail


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # 1) extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # 2) models must be imported before create_all / migrations
    from ezrent import models  # noqa: F401

    # 3) API blueprints
    from ezrent.controllers.book_controller import book_bp
    from ezrent.controllers.payment_controller import payment_bp
    from ezrent.controllers.return_controller import return_bp
    from ezrent.controllers.history_controller import history_bp
    from ezrent.controllers.notification_controller import notif_bp
    app.register_blueprint(book_bp, url_prefix="/api/book")
    app.register_blueprint(payment_bp, url_prefix="/api/payment")
    app.register_blueprint(return_bp, url_prefix="/api/return")
    app.register_blueprint(history_bp, url_prefix="/api/history")
    app.register_blueprint(notif_bp, url_prefix="/api/notifications")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # Scheduler (rental monitor)
    if app.config.get("SCHEDULER_ENABLED"):
        from ezrent.tasks.scheduler import start_scheduler
        start_scheduler(app)

    return app
