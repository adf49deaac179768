from app.api.personal_training.assignments import assignments_bp
from app.api.customer.details import details_bp
from app.api.trainers.details import trainers_bp
from app.api.payments.receipts import receipts_bp
from app.api.finance.reports import finance_bp
from app.routes.auth import auth_bp
from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv
from flasgger import Swagger
from swagger__config import SWAGGER_CONFIG, SWAGGER_TEMPLATE
import os

load_dotenv()
from app.config import Config  # noqa: E402
from app.extensions import db  # noqa: E402
from app.scheduler import init_scheduler  # noqa: E402


def create_app(test_config=None):
    app = Flask(__name__)
    try:
        app.config.from_object(Config)
        if test_config:
            app.config.update(test_config)

        CORS(app)
        db.init_app(app)

        # Determine host based on environment
        host = os.environ.get("API_HOST", "127.0.0.1:5000")
        swagger_template = SWAGGER_TEMPLATE.copy()
        swagger_template["host"] = host
        Swagger(app, config=SWAGGER_CONFIG, template=swagger_template)

        blueprints = [
            auth_bp,
            assignments_bp,
            details_bp,
            trainers_bp,
            receipts_bp,
            finance_bp,
        ]

        for bp in blueprints:
            app.register_blueprint(bp)
            app.logger.debug(f"  ✓ {bp.name} registered")

        @app.route("/")
        def home():
            """
            Root endpoint - API status
            ---
            tags:
              - Utility
            responses:
              200:
                description: API is running
                schema:
                  type: object
                  properties:
                    status:
                      type: string
                    message:
                      type: string
            """
            return {"status": "ok", "message": "Backend is running!"}, 200

        if app.config.get("SCHEDULER_ENABLED"):
            init_scheduler(app)

    except Exception as e:
        print(f"Error during app creation: {e}")
        import traceback

        print(f"Full traceback: {traceback.format_exc()}")
        raise

    return app


app = create_app()


if __name__ == "__main__":
    # Create a .env containing:
    #       DATABASE_URL=mysql+pymysql://<USER>:<PASSWORD>@<HOST>:<PORT>/gym_app
    # OR for local work:
    #       FLASK_ENV=development   (falls back to sqlite:///gym_dev.db)

    with app.app_context():
        from app.models import Base

        Base.metadata.create_all(bind=db.engine)

    port = int(os.environ.get("PORT", 5000))
    app.run(
        host="0.0.0.0", port=port, debug=os.environ.get("FLASK_ENV") != "production"
    )
