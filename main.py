from core.imports import Flask, logging
from core.config import Config
from core.extensions import db, jwt, swagger, cors, bcrypt, migrate
from core.errors import register_error_handlers
from routes.auth import auth_bp, seed_demo_farmer, seed_demo_buyer
from routes.listings import listings_bp, seed_demo_listings
from routes.marketplace import marketplace_bp
from routes.messages import messages_bp
from routes.orders import orders_bp
from routes.reviews import reviews_bp


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    )

    db.init_app(app)
    jwt.init_app(app)
    swagger.init_app(app)
    cors.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)

    register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(listings_bp)
    app.register_blueprint(marketplace_bp)
    app.register_blueprint(messages_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(reviews_bp)

    @app.route('/ping')
    def ping():
        return "Ping received", 200

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()

        seed_demo_farmer()
        seed_demo_buyer()
        seed_demo_listings()

    app.run(debug=True)
