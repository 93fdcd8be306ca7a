"""
User Model
Accounts with a role and optional study attributes used for event eligibility
"""
from werkzeug.security import check_password_hash, generate_password_hash

from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc

ROLES = ('USER', 'STAFF', 'ADMIN')


class User(db.Model):
    """User model"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(191), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    display_name = db.Column(db.String(191), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='USER')

    # Eligibility attributes - NULL means not provided
    study_level = db.Column(db.String(100), nullable=True)
    study_program = db.Column(db.String(191), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    def __repr__(self):
        return f'<User {self.email}>'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self):
        return self.role in ('STAFF', 'ADMIN')

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'display_name': self.display_name,
            'role': self.role,
            'study_level': self.study_level,
            'study_program': self.study_program,
            'created_at': isoformat(self.created_at),
        }
