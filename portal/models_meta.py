"""
Meta Ads Models
Ad-account targets, encrypted OAuth tokens, refresh audit trail and collected insights
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Client(Base):
    """An advertiser whose Meta ad account we collect data for"""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(255), nullable=False)
    meta_ad_account_id = Column(String(50), nullable=True)  # act_XXXXXXXX

    # OAuth tokens (encrypted, "ivhex:cipherhex")
    meta_access_token = Column(Text, nullable=True)
    meta_refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    auth_status = Column(String(20), default="ACTIVE", nullable=False)  # ACTIVE, AUTH_REQUIRED, TOKEN_EXPIRED

    is_active = Column(Boolean, default=True, nullable=False)
    service_period_end = Column(Date, nullable=True)  # None = open-ended
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    refresh_logs = relationship("TokenRefreshLog", back_populates="client", cascade="all, delete-orphan")
    targets = relationship("ClientTarget", back_populates="client", cascade="all, delete-orphan")


class TokenRefreshLog(Base):
    """Audit row for every token refresh attempt"""

    __tablename__ = "token_refresh_logs"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    success = Column(Boolean, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="refresh_logs")


class RawData(Base):
    """Daily insight row per ad, platform and device"""

    __tablename__ = "raw_data"
    __table_args__ = (
        UniqueConstraint("client_id", "date", "ad_id", "platform", "device", name="uq_raw_data_row"),
    )

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    ad_id = Column(String(50), nullable=False)
    ad_name = Column(String(255), nullable=True)
    campaign_id = Column(String(50), nullable=True)
    campaign_name = Column(String(255), nullable=True)
    platform = Column(String(50), nullable=False)
    device = Column(String(50), nullable=False)
    currency = Column(String(10), default="KRW", nullable=False)
    impressions = Column(Integer, default=0, nullable=False)
    reach = Column(Integer, default=0, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
    leads = Column(Integer, default=0, nullable=False)
    spend = Column(Numeric(14, 2), default=0, nullable=False)
    video_views = Column(Integer, default=0, nullable=False)
    avg_watch_time = Column(Float, default=0, nullable=False)
    cost_per_video_view = Column(Float, default=0, nullable=False)
    cost_per_lead = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ClientTarget(Base):
    """Monthly KPI target for an advertiser"""

    __tablename__ = "client_targets"
    __table_args__ = (UniqueConstraint("client_id", "target_month", name="uq_client_targets_month"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    target_month = Column(Date, nullable=False)  # First day of the month
    target_leads = Column(Integer, nullable=True)
    target_spend = Column(Numeric(14, 2), nullable=True)
    target_cpl = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="targets")
