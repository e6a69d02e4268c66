from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Workflow types created for every new account
DEFAULT_WORKFLOW_TYPES = ["NAMECARD", "NAMETAG", "CONTRACT", "ENVELOPE", "WEBSITE"]

# Deliverables that finish online, with no print order
DIGITAL_WORKFLOW_TYPES = {"WEBSITE", "BLOG"}

# Documents that are forwarded to Slack and never stored
SENSITIVE_FILE_TYPES = ("businessLicense", "idCard", "bankBook")

# Contract statuses that count as "in flight" for the one-contract-per-user rule
IN_FLIGHT_CONTRACT_STATUSES = ("PENDING", "SUBMITTED")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(255), nullable=False)  # Company / brand the account belongs to
    name = Column(String(100), nullable=False)  # Contact person
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=False, index=True)  # Digits only
    password = Column(String(255), nullable=False)  # bcrypt hash of the 4-digit PIN
    is_active = Column(Boolean, default=True, nullable=False)
    sms_consent = Column(Boolean, default=False, nullable=False)
    email_consent = Column(Boolean, default=False, nullable=False)
    telegram_chat_id = Column(String(64), nullable=True)
    telegram_enabled = Column(Boolean, default=False, nullable=False)
    # Ads target linked by staff; enables the analytics page
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    submission = relationship("Submission", back_populates="user", uselist=False)
    workflows = relationship("Workflow", back_populates="user", order_by="Workflow.id")
    contracts = relationship("Contract", back_populates="user")
    threads = relationship("CommunicationThread", back_populates="user")
    client = relationship("Client")


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Ordinary fields
    profile_photo = Column(String(1000), nullable=True)  # Public R2 URL
    brand_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    bank_account = Column(String(255), nullable=True)
    delivery_address = Column(Text, nullable=True)
    website_style = Column(String(100), nullable=True)
    website_color = Column(String(100), nullable=True)
    blog_design_note = Column(Text, nullable=True)
    additional_note = Column(Text, nullable=True)

    # Delivery ledger for sensitive documents: {fileType: ISO timestamp}. The documents themselves are not kept.
    sensitive_documents = Column(JSON, default=dict, nullable=False)

    status = Column(String(20), default="DRAFT", nullable=False)  # DRAFT, SUBMITTED, IN_REVIEW, APPROVED, REJECTED
    is_complete = Column(Boolean, default=False, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)  # Set on completion, cleared by edit mode
    slack_channel_id = Column(String(50), nullable=True)
    admin_note = Column(Text, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="submission")


class Workflow(Base):
    __tablename__ = "workflows"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # NAMECARD, NAMETAG, CONTRACT, ENVELOPE, WEBSITE, BLOG, META_ADS, NAVER_ADS
    # PENDING, SUBMITTED, IN_PROGRESS, DESIGN_UPLOADED, ORDER_REQUESTED, ORDER_APPROVED, COMPLETED, SHIPPED, CANCELLED
    status = Column(String(20), default="PENDING", nullable=False)
    version = Column(Integer, default=1, nullable=False)  # Bumped on every user transition

    design_url = Column(String(1000), nullable=True)
    final_url = Column(String(1000), nullable=True)
    courier = Column(String(50), nullable=True)
    tracking_number = Column(String(100), nullable=True)
    revision_count = Column(Integer, default=0, nullable=False)
    revision_note = Column(Text, nullable=True)

    submitted_at = Column(DateTime, nullable=True)
    design_started_at = Column(DateTime, nullable=True)
    design_uploaded_at = Column(DateTime, nullable=True)
    order_requested_at = Column(DateTime, nullable=True)
    order_approved_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="workflows")
    logs = relationship(
        "WorkflowLog", back_populates="workflow", order_by="desc(WorkflowLog.id)", cascade="all, delete-orphan"
    )
    design = relationship("Design", back_populates="workflow", uselist=False)


class WorkflowLog(Base):
    """Append-only status trail for a workflow"""

    __tablename__ = "workflow_logs"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id"), nullable=False, index=True)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by = Column(String(100), nullable=False)  # "user:<id>" or admin name
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    workflow = relationship("Workflow", back_populates="logs")


class Design(Base):
    __tablename__ = "designs"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("workflows.id"), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    status = Column(String(30), default="DRAFT", nullable=False)  # DRAFT, PENDING_REVIEW, REVISION_REQUESTED, APPROVED
    current_version = Column(Integer, default=0, nullable=False)
    approved_version = Column(Integer, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    workflow = relationship("Workflow", back_populates="design")
    versions = relationship(
        "DesignVersion", back_populates="design", order_by="desc(DesignVersion.version)", cascade="all, delete-orphan"
    )


class DesignVersion(Base):
    __tablename__ = "design_versions"
    __table_args__ = (UniqueConstraint("design_id", "version", name="uq_design_versions_design_version"),)

    id = Column(Integer, primary_key=True, index=True)
    design_id = Column(Integer, ForeignKey("designs.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    url = Column(String(1000), nullable=False)
    note = Column(Text, nullable=True)
    uploaded_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    design = relationship("Design", back_populates="versions")
    feedback = relationship(
        "DesignFeedback", back_populates="version", order_by="DesignFeedback.id", cascade="all, delete-orphan"
    )


class DesignFeedback(Base):
    __tablename__ = "design_feedback"

    id = Column(Integer, primary_key=True, index=True)
    version_id = Column(Integer, ForeignKey("design_versions.id"), nullable=False, index=True)
    author_type = Column(String(10), nullable=False)  # user, admin
    author_id = Column(String(50), nullable=True)
    author_name = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    version = relationship("DesignVersion", back_populates="feedback")


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)  # Monthly fee in KRW
    features = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        # One PENDING/SUBMITTED contract per user, enforced by the database
        Index(
            "uq_contracts_user_in_flight",
            "user_id",
            unique=True,
            sqlite_where=text("status IN ('PENDING', 'SUBMITTED')"),
            postgresql_where=text("status IN ('PENDING', 'SUBMITTED')"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_number = Column(String(20), unique=True, nullable=False)  # YYYYMMDD-NNNN
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=False)

    # Party details
    company_name = Column(String(255), nullable=False)
    ceo_name = Column(String(100), nullable=False)
    business_number = Column(String(20), nullable=False)
    address = Column(Text, nullable=False)
    contact_name = Column(String(100), nullable=False)
    contact_phone = Column(String(50), nullable=False)
    contact_email = Column(String(255), nullable=False)

    contract_period = Column(Integer, default=12, nullable=False)  # Months
    monthly_fee = Column(Integer, nullable=False)
    total_amount = Column(Integer, nullable=False)

    client_signature = Column(Text, nullable=True)  # PNG data URL from the signature pad
    signed_at = Column(DateTime, nullable=True)
    signed_ip = Column(String(64), nullable=True)

    # PENDING, SUBMITTED, APPROVED, ACTIVE, REJECTED, EXPIRED, CANCELLED
    status = Column(String(20), default="PENDING", nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    reject_reason = Column(Text, nullable=True)
    admin_note = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="contracts")
    package = relationship("Package")
    logs = relationship(
        "ContractLog", back_populates="contract", order_by="desc(ContractLog.id)", cascade="all, delete-orphan"
    )


class ContractLog(Base):
    __tablename__ = "contract_logs"

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    changed_by = Column(String(100), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    contract = relationship("Contract", back_populates="logs")


class CommunicationThread(Base):
    __tablename__ = "communication_threads"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    category = Column(String(50), default="일반", nullable=False)
    status = Column(String(20), default="OPEN", nullable=False)  # OPEN, IN_PROGRESS, RESOLVED
    last_reply_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="threads")
    messages = relationship(
        "CommunicationMessage",
        back_populates="thread",
        order_by="CommunicationMessage.id",
        cascade="all, delete-orphan",
    )


class CommunicationMessage(Base):
    __tablename__ = "communication_messages"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(Integer, ForeignKey("communication_threads.id"), nullable=False, index=True)
    author_type = Column(String(10), nullable=False)  # user, admin
    author_id = Column(String(50), nullable=False)
    author_name = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    attachments = Column(JSON, default=list, nullable=False)  # Public URLs
    is_read_by_user = Column(Boolean, default=False, nullable=False)
    is_read_by_admin = Column(Boolean, default=False, nullable=False)
    read_by_user_at = Column(DateTime, nullable=True)
    read_by_admin_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    thread = relationship("CommunicationThread", back_populates="messages")
