import os
from flask import Flask, redirect, request, url_for
from .config import DevelopmentConfig, ProductionConfig
from .extensions import db, migrate, ma, cors
from .utils.log_config import configure_logging


def create_app(config_object=None, uploader=None):
    app = Flask(__name__, instance_relative_config=False)
    if config_object is None:
        env = os.getenv("FLASK_ENV", "development")
        config_object = ProductionConfig if env == "production" else DevelopmentConfig
    app.config.from_object(config_object)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    os.makedirs(app.config["TEMP_FOLDER"], exist_ok=True)
    os.makedirs(app.config["STORAGE_FOLDER"], exist_ok=True)

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",") if o.strip()]
    cors.init_app(
        app,
        resources={r"/api/v1/client/*": {"origins": origins}},
        allow_headers=["Content-Type"],
        methods=["GET", "POST", "OPTIONS"],
    )

    # fail fast on missing storage credentials
    from order_portal.services.storage_service import init_storage
    init_storage(app, uploader)

    # models must be registered before create_all
    from order_portal.models import order, version, feedback  # noqa: F401

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    # register blueprints
    from order_portal.routes.admin_routes import bp as admin_bp, api_bp as admin_api_bp
    from order_portal.routes.client_routes import bp as client_bp
    from order_portal.routes.file_routes import bp as files_bp

    app.register_blueprint(admin_bp)
    app.register_blueprint(admin_api_bp)
    app.register_blueprint(client_bp)
    app.register_blueprint(files_bp)

    @app.route("/")
    def index():
        return redirect(url_for("admin.dashboard"))

    # error handlers to match required error format
    from order_portal.utils.response_formatter import error_response, text_response

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", str(e), status=400)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(413)
    def too_large(e):
        # Admin form posts get plain text like the rest of the admin pages
        if request.blueprint == "admin":
            return text_response("Uploaded file is too large", 413)
        return error_response("FILE_TOO_LARGE", "Uploaded file is too large", status=413)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(port=application.config["PORT"])
