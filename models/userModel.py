from core.extensions import db
from core.imports import datetime


class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password = db.Column(db.String(200), nullable=False)
    user_type = db.Column(db.String(20), nullable=False)  # 'buyer', 'farmer'

    full_name = db.Column(db.String(150))
    company_name = db.Column(db.String(150))
    phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    zip_code = db.Column(db.String(20))
    country = db.Column(db.String(100))
    bio = db.Column(db.Text)
    website = db.Column(db.String(255))
    avatar_url = db.Column(db.String(500))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def display_name(self):
        return self.company_name or self.full_name or "User"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "user_type": self.user_type,
            "full_name": self.full_name,
            "company_name": self.company_name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "bio": self.bio,
            "website": self.website,
            "avatar_url": self.avatar_url,
        }
