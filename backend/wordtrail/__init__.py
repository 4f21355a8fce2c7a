from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config
from wordtrail.redis_store import RedisStore

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
redis_store = RedisStore()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    redis_store.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from wordtrail.main import main
    flask_app.register_blueprint(main)

    from wordtrail.api.categories import categories
    flask_app.register_blueprint(categories, url_prefix='/api/categories')

    from wordtrail.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from wordtrail.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        from flask import jsonify
        return jsonify({'error': 'Login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the host account database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            users = ['testuser1', 'testuser2', 'testuser3']
            for u in users:
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)
            moderator = User(username='moderator', is_moderator=True)
            moderator.set_password('password')
            db.session.add(moderator)

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('store-init')
    def store_init_command():
        """Seeds the category sequence counter and creates the hub post."""
        from wordtrail.services.categories.lifecycle import CategoryLifecycle
        from wordtrail.services.host import HostPlatform
        with flask_app.app_context():
            state = CategoryLifecycle(redis_store.client, HostPlatform(), flask_app.config).initialize()
            print(f"Store ready: sequence={state['sequence']} main_post={state['main_post_id']}")

    @click.command('janitor-run')
    def janitor_run_command():
        """Runs one account janitor pass."""
        from wordtrail.services.janitor import AccountJanitor
        from wordtrail.services.host import HostPlatform
        with flask_app.app_context():
            report = AccountJanitor(redis_store.client, HostPlatform(), flask_app.config).run_pass()
            print(f"Janitor pass: {report.to_dict()}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(store_init_command)
    flask_app.cli.add_command(janitor_run_command)

    from wordtrail.services.janitor import schedule_janitor
    schedule_janitor(flask_app)

    return flask_app
