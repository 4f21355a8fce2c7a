import time

from flask_login import UserMixin

from wordtrail import db, bcrypt


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    is_moderator = db.Column(db.Boolean, default=False, nullable=False)
    # Accounts are deactivated rather than deleted so posts keep their author row
    deactivated = db.Column(db.Boolean, default=False, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return not self.deactivated

    @property
    def user_id(self) -> str:
        """Id under which the game store keys this account."""
        return str(self.id)

    def to_dict(self):
        return {
            'id': self.user_id,
            'username': self.username,
            'is_moderator': self.is_moderator,
        }


class Post(db.Model):
    __tablename__ = 'post'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    kind = db.Column(db.String(16), default='category', nullable=False)  # main, category
    approved = db.Column(db.Boolean, default=False, nullable=False)
    removed = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.Float, default=time.time, nullable=False)
    comments = db.relationship('Comment', backref='post', lazy='dynamic')

    def to_dict(self):
        return {
            'id': str(self.id),
            'title': self.title,
            'kind': self.kind,
            'approved': self.approved,
            'removed': self.removed,
        }


class Comment(db.Model):
    __tablename__ = 'comment'
    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('post.id'), nullable=False)
    text = db.Column(db.Text, nullable=False)
    approved = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.Float, default=time.time, nullable=False)

    def to_dict(self):
        return {
            'id': str(self.id),
            'post_id': str(self.post_id),
            'text': self.text,
            'approved': self.approved,
        }
