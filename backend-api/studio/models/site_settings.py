"""
Site settings model (singleton row, id = 1)

Column names follow the remote snake_case convention; the embedded
collections (skills, faqs, plans) and the SEO record are stored as JSON.
"""

from sqlalchemy import Column, Integer, String, Text

from studio.core.database import Base, JSON


class SiteSettings(Base):
    """Singleton site settings"""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, default=1)
    site_name = Column(String(200))
    tagline = Column(String(300))
    hero_headline = Column(String(300))
    hero_subtext = Column(Text)
    contact_email = Column(String(255))
    contact_phone = Column(String(50))
    location = Column(String(255))
    instagram_url = Column(String(500))
    linkedin_url = Column(String(500))
    theme = Column(String(10))
    coupon_prefix = Column(String(20))
    seo = Column(JSON())
    skills = Column(JSON())
    faqs = Column(JSON())
    plans = Column(JSON())

    def __repr__(self) -> str:
        return f"<SiteSettings(id={self.id}, site_name={self.site_name})>"
