import redis


class RedisStore:
    """Holds the redis client for the app, configured from REDIS_URL.

    REDIS_CLIENT_CLASS picks the client implementation (tests use an
    in-memory one with the same interface).
    """

    def __init__(self, app=None):
        self.client = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        client_class = app.config.get('REDIS_CLIENT_CLASS') or redis.Redis
        self.client = client_class.from_url(app.config['REDIS_URL'], decode_responses=True)
        app.extensions['redis_store'] = self
