"""
Data access for every entity, and the only write path for invariant-bearing fields.

All functions are synchronous and take the request-scoped Session first. Failures
surface as AppError subclasses (NotFoundError, ValidationError, ForbiddenError,
ConflictError); unique-constraint violations that slip past the pre-checks are
translated to ConflictError at commit time.
"""
import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import String, and_, cast, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..config import MATCH_CANDIDATE_POOL, MATCH_RESULTS_LIMIT
from ..models import Job, JobApplication, Payment, Post, User, UserConnection
from ..models.columns import utcnow
from ..utils.error_handlers import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    get_error_message,
    handle_database_error,
)
from ..utils.validation import (
    APPLICATION_STATUSES,
    CONNECTION_DECISIONS,
    PAYMENT_PURPOSES,
    PAYMENT_STATUSES,
)
from .matching_engine import RankedJob, rank_jobs_for_user
from .profile_strength import compute_profile_strength

logger = logging.getLogger(__name__)

USER_UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "bio",
    "title",
    "linkedin_url",
    "wallet_address",
    "wallet_type",
    "skills",
    "profile_image_url",
}
JOB_UPDATABLE_FIELDS = {
    "title",
    "company",
    "description",
    "location",
    "salary_range",
    "required_skills",
    "employment_type",
    "is_remote",
    "is_active",
}
JOB_PAYMENT_FIELDS = {"payment_status", "payment_tx_hash", "payment_amount"}
POST_COUNTER_FIELDS = ("likes", "comments", "shares")

# Forward-only lifecycles. Anything not listed (other than a same-state write) is a conflict.
_JOB_PAYMENT_TRANSITIONS = {
    "pending": {"paid", "failed"},
    "paid": set(),
    "failed": set(),
}
_PAYMENT_TRANSITIONS = {
    "pending": {"confirmed", "verified", "failed"},
    "confirmed": {"verified", "failed"},
    "verified": set(),
    "failed": set(),
}
_APPLICATION_TRANSITIONS = {
    "pending": {"reviewed", "accepted", "rejected"},
    "reviewed": {"accepted", "rejected"},
    "accepted": set(),
    "rejected": set(),
}
# Payment status -> job payment status, for job-posting payments.
_PAYMENT_TO_JOB_STATUS = {"confirmed": "paid", "verified": "paid", "failed": "failed"}


def _commit(db: Session, operation: str, *objs: Any) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, operation) from e
    for obj in objs:
        db.refresh(obj)


def _check_transition(transitions: dict[str, set[str]], current: str, target: str, what: str) -> bool:
    """True when a write is needed, False for a same-state no-op."""
    if current == target:
        return False
    if target not in transitions.get(current, set()):
        raise ConflictError(
            f"Invalid {what} transition: {current} -> {target}",
            details={"from": current, "to": target},
        )
    return True


def _reject_unknown_fields(updates: dict, allowed: Iterable[str], what: str) -> None:
    unknown = sorted(set(updates) - set(allowed))
    if unknown:
        raise ValidationError(
            f"{what} fields cannot be updated: {', '.join(unknown)}",
            details={"fields": unknown},
        )


# -------------------- Users --------------------

def get_user(db: Session, user_id: str) -> User | None:
    if not user_id:
        return None
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == (email or "").strip().lower()).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == (username or "").strip()).first()


def create_user(db: Session, data: dict) -> User:
    """`data["password"]` must already be a bcrypt hash."""
    if get_user_by_username(db, data.get("username", "")):
        raise ConflictError(get_error_message("username_exists"))
    if get_user_by_email(db, data.get("email", "")):
        raise ConflictError(get_error_message("email_exists"))

    user = User(
        username=data["username"].strip(),
        email=data["email"].strip().lower(),
        password=data["password"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        bio=data.get("bio"),
        title=data.get("title"),
        linkedin_url=data.get("linkedin_url"),
        wallet_address=data.get("wallet_address"),
        wallet_type=data.get("wallet_type"),
        skills=list(data.get("skills") or []),
        profile_image_url=data.get("profile_image_url"),
    )
    user.profile_strength = compute_profile_strength(user)
    db.add(user)
    _commit(db, "creating user", user)
    logger.info("Created user %s (%s)", user.id, user.username)
    return user


def update_user(db: Session, user_id: str, updates: dict) -> User:
    _reject_unknown_fields(updates, USER_UPDATABLE_FIELDS, "User")
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError(get_error_message("user_not_found"))

    for key, value in updates.items():
        if key == "skills":
            value = list(value or [])
        setattr(user, key, value)
    user.profile_strength = compute_profile_strength(user)
    user.updated_at = utcnow()
    _commit(db, "updating user", user)
    return user


def search_users(db: Session, query: str, limit: int = 20) -> list[User]:
    q = (query or "").strip().lower()
    if not q:
        return []
    columns = (User.first_name, User.last_name, User.username, User.title)
    conditions = [col.ilike(f"%{_escape_like(q)}%", escape="\\") for col in columns]
    return db.query(User).filter(or_(*conditions)).order_by(User.username).limit(limit).all()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# -------------------- Jobs --------------------


def _json_text_matchable(skill: str) -> bool:
    # Non-ASCII, quotes and backslashes are escaped in the stored JSON text.
    return skill.isascii() and skill.isprintable() and "\"" not in skill and "\\" not in skill


def create_job(db: Session, data: dict, posted_by: str) -> Job:
    if get_user(db, posted_by) is None:
        raise NotFoundError(get_error_message("user_not_found"))
    payment_fields = sorted(JOB_PAYMENT_FIELDS & set(data))
    if payment_fields:
        raise ValidationError(get_error_message("job_payment_locked"), details={"fields": payment_fields})

    job = Job(
        title=data["title"],
        company=data["company"],
        description=data["description"],
        location=data.get("location"),
        salary_range=data.get("salary_range"),
        required_skills=list(data.get("required_skills") or []),
        employment_type=data.get("employment_type"),
        is_remote=bool(data.get("is_remote", False)),
        posted_by=posted_by,
        payment_status="pending",
        is_active=True,
    )
    db.add(job)
    _commit(db, "creating job", job)
    logger.info("Created job %s for user %s", job.id, posted_by)
    return job


def get_job(db: Session, job_id: str) -> Job | None:
    if not job_id:
        return None
    return db.get(Job, job_id)


def get_jobs(
    db: Session,
    skills: list[str] | None = None,
    location: str | None = None,
    is_remote: bool | None = None,
    limit: int | None = None,
    offset: int | None = None,
    include_inactive: bool = False,
) -> list[Job]:
    """Newest first. Active jobs only unless include_inactive is set."""
    q = db.query(Job)
    if not include_inactive:
        q = q.filter(Job.is_active.is_(True))
    if location and location.strip():
        q = q.filter(Job.location.ilike(f"%{_escape_like(location.strip())}%", escape="\\"))
    if is_remote is not None:
        q = q.filter(Job.is_remote.is_(bool(is_remote)))
    q = q.order_by(Job.created_at.desc(), Job.id)

    wanted = {s.strip().lower() for s in (skills or []) if isinstance(s, str) and s.strip()}
    if not wanted:
        if offset:
            q = q.offset(offset)
        if limit:
            q = q.limit(limit)
        return q.all()

    if all(_json_text_matchable(s) for s in wanted):
        # Coarse substring pass on the JSON text; the exact match below still decides.
        skills_text = func.lower(cast(Job.required_skills, String))
        q = q.filter(or_(*(skills_text.like(f"%{_escape_like(s)}%", escape="\\") for s in wanted)))

    # required_skills is a JSON column, so exact "any skill" matching runs here, before paging.
    jobs = [
        job for job in q.all()
        if any(isinstance(s, str) and s.strip().lower() in wanted for s in (job.required_skills or []))
    ]
    start = offset or 0
    end = start + limit if limit else None
    return jobs[start:end]


def update_job(db: Session, job_id: str, updates: dict) -> Job:
    payment_fields = sorted(JOB_PAYMENT_FIELDS & set(updates))
    if payment_fields:
        raise ValidationError(get_error_message("job_payment_locked"), details={"fields": payment_fields})
    _reject_unknown_fields(updates, JOB_UPDATABLE_FIELDS, "Job")

    job = get_job(db, job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))

    for key, value in updates.items():
        if key == "required_skills":
            value = list(value or [])
        setattr(job, key, value)
    job.updated_at = utcnow()
    _commit(db, "updating job", job)
    return job


def deactivate_job(db: Session, job_id: str) -> Job:
    job = get_job(db, job_id)
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))
    if job.is_active:
        job.is_active = False
        job.updated_at = utcnow()
        _commit(db, "deactivating job", job)
        logger.info("Deactivated job %s", job.id)
    return job


def get_user_jobs(db: Session, user_id: str) -> list[Job]:
    return (
        db.query(Job)
        .filter(Job.posted_by == user_id)
        .order_by(Job.created_at.desc(), Job.id)
        .all()
    )


def set_job_payment_status(
    db: Session,
    job: Job,
    status: str,
    tx_hash: str | None = None,
    amount: Any = None,
    commit: bool = True,
) -> Job:
    """
    The only writer of Job payment fields.

    pending -> paid | failed. A same-state write is a no-op; anything else
    (including paid -> pending) raises ConflictError.
    """
    if status not in _JOB_PAYMENT_TRANSITIONS:
        raise ValidationError(f"Invalid payment status: {status}")
    current = job.payment_status or "pending"
    if not _check_transition(_JOB_PAYMENT_TRANSITIONS, current, status, "job payment status"):
        return job

    job.payment_status = status
    if tx_hash is not None:
        job.payment_tx_hash = tx_hash
    if amount is not None:
        job.payment_amount = _to_decimal(amount)
    job.updated_at = utcnow()
    logger.info("Job %s payment status %s -> %s", job.id, current, status)
    if commit:
        _commit(db, "updating job payment status", job)
    return job


def get_job_matches(db: Session, user_id: str, limit: int | None = MATCH_RESULTS_LIMIT) -> list[RankedJob]:
    user = get_user(db, user_id)
    if user is None or not user.skills:
        return []
    jobs = get_jobs(db, limit=MATCH_CANDIDATE_POOL)
    return rank_jobs_for_user(user, jobs, limit=limit)


# -------------------- Posts --------------------

def create_post(db: Session, data: dict, author_id: str) -> Post:
    if get_user(db, author_id) is None:
        raise NotFoundError(get_error_message("user_not_found"))
    job_id = data.get("job_id")
    if job_id and get_job(db, job_id) is None:
        raise NotFoundError(get_error_message("job_not_found"))

    post = Post(
        content=data["content"],
        author_id=author_id,
        type=data.get("type") or "text",
        media_urls=list(data.get("media_urls") or []),
        tags=list(data.get("tags") or []),
        job_id=job_id or None,
    )
    db.add(post)
    _commit(db, "creating post", post)
    return post


def get_posts(db: Session, limit: int = 20, offset: int = 0) -> list[Post]:
    return (
        db.query(Post)
        .options(joinedload(Post.author))
        .order_by(Post.created_at.desc(), Post.id)
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_post(db: Session, post_id: str) -> Post | None:
    if not post_id:
        return None
    return db.get(Post, post_id)


def update_post_stats(db: Session, post_id: str, field: str, delta: int = 1) -> Post:
    """Atomic `SET field = field + delta`; counters never decrease."""
    if field not in POST_COUNTER_FIELDS:
        raise ValidationError(f"Invalid counter field: {field}")
    if isinstance(delta, bool) or not isinstance(delta, int) or delta < 0:
        raise ValidationError("Counter delta must be a non-negative integer")

    column = getattr(Post, field)
    try:
        result = db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values({field: column + delta, "updated_at": utcnow()})
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundError(get_error_message("post_not_found"))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "updating post stats") from e

    post = db.get(Post, post_id)
    db.refresh(post)
    return post


# -------------------- Applications --------------------

def create_job_application(
    db: Session,
    data: dict,
    applicant_id: str,
    match_score: int | None = None,
) -> JobApplication:
    job = get_job(db, data.get("job_id"))
    if job is None:
        raise NotFoundError(get_error_message("job_not_found"))
    if not job.is_active:
        raise ValidationError(get_error_message("job_closed"))
    existing = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job.id, JobApplication.applicant_id == applicant_id)
        .first()
    )
    if existing is not None:
        raise ConflictError(get_error_message("already_applied"))

    if match_score is not None:
        match_score = max(0, min(100, int(match_score)))
    application = JobApplication(
        job_id=job.id,
        applicant_id=applicant_id,
        status="pending",
        match_score=match_score,
        cover_letter=data.get("cover_letter"),
        resume_url=data.get("resume_url"),
    )
    db.add(application)
    _commit(db, "creating job application", application)
    return application


def get_application(db: Session, application_id: str) -> JobApplication | None:
    if not application_id:
        return None
    return db.get(JobApplication, application_id)


def get_job_applications(db: Session, job_id: str) -> list[JobApplication]:
    return (
        db.query(JobApplication)
        .options(joinedload(JobApplication.applicant))
        .filter(JobApplication.job_id == job_id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id)
        .all()
    )


def get_user_applications(db: Session, user_id: str) -> list[JobApplication]:
    return (
        db.query(JobApplication)
        .options(joinedload(JobApplication.job))
        .filter(JobApplication.applicant_id == user_id)
        .order_by(JobApplication.created_at.desc(), JobApplication.id)
        .all()
    )


def update_application_status(db: Session, application_id: str, status: str) -> JobApplication:
    if status not in APPLICATION_STATUSES:
        raise ValidationError(f"Invalid application status: {status}")
    application = get_application(db, application_id)
    if application is None:
        raise NotFoundError(get_error_message("application_not_found"))
    if _check_transition(_APPLICATION_TRANSITIONS, application.status, status, "application status"):
        application.status = status
        application.updated_at = utcnow()
        _commit(db, "updating application status", application)
    return application


# -------------------- Connections --------------------

def create_connection(db: Session, requester_id: str, recipient_id: str) -> UserConnection:
    if requester_id == recipient_id:
        raise ValidationError(get_error_message("self_connection"))
    if get_user(db, recipient_id) is None:
        raise NotFoundError(get_error_message("user_not_found"))

    existing = (
        db.query(UserConnection)
        .filter(
            or_(
                and_(UserConnection.requester_id == requester_id, UserConnection.recipient_id == recipient_id),
                and_(UserConnection.requester_id == recipient_id, UserConnection.recipient_id == requester_id),
            ),
            UserConnection.status != "rejected",
        )
        .first()
    )
    if existing is not None:
        raise ConflictError(get_error_message("connection_exists"))

    connection = UserConnection(requester_id=requester_id, recipient_id=recipient_id, status="pending")
    db.add(connection)
    _commit(db, "creating connection", connection)
    return connection


def get_user_connections(db: Session, user_id: str) -> list[UserConnection]:
    """Accepted connections on either side, with both users loaded."""
    return (
        db.query(UserConnection)
        .options(joinedload(UserConnection.requester), joinedload(UserConnection.recipient))
        .filter(
            or_(UserConnection.requester_id == user_id, UserConnection.recipient_id == user_id),
            UserConnection.status == "accepted",
        )
        .order_by(UserConnection.updated_at.desc(), UserConnection.id)
        .all()
    )


def get_pending_connections(db: Session, user_id: str) -> list[UserConnection]:
    return (
        db.query(UserConnection)
        .options(joinedload(UserConnection.requester))
        .filter(UserConnection.recipient_id == user_id, UserConnection.status == "pending")
        .order_by(UserConnection.created_at.desc(), UserConnection.id)
        .all()
    )


def update_connection_status(db: Session, connection_id: str, recipient_id: str, status: str) -> UserConnection:
    if status not in CONNECTION_DECISIONS:
        raise ValidationError(f"Invalid connection status: {status}")
    connection = db.get(UserConnection, connection_id) if connection_id else None
    if connection is None:
        raise NotFoundError(get_error_message("connection_not_found"))
    if connection.recipient_id != recipient_id:
        raise ForbiddenError("Only the recipient can respond to a connection request")

    if connection.status == status:
        return connection
    if connection.status != "pending":
        raise ConflictError(
            f"Connection request was already {connection.status}",
            details={"from": connection.status, "to": status},
        )
    connection.status = status
    connection.updated_at = utcnow()
    _commit(db, "updating connection status", connection)
    return connection


# -------------------- Payments --------------------

def _to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid amount: {value}") from e


def create_payment(db: Session, data: dict) -> Payment:
    tx_hash = (data.get("tx_hash") or "").strip()
    if not tx_hash:
        raise ValidationError("Transaction hash is required")
    if get_payment(db, tx_hash) is not None:
        raise ConflictError(get_error_message("tx_already_used"))
    if get_user(db, data.get("user_id")) is None:
        raise NotFoundError(get_error_message("user_not_found"))
    job_id = data.get("job_id")
    if job_id and get_job(db, job_id) is None:
        raise NotFoundError(get_error_message("job_not_found"))

    status = data.get("status") or "pending"
    if status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status: {status}")
    purpose = data.get("purpose")
    if purpose not in PAYMENT_PURPOSES:
        raise ValidationError(f"Invalid payment purpose: {purpose}")

    payment = Payment(
        user_id=data["user_id"],
        job_id=job_id or None,
        amount=_to_decimal(data.get("amount")),
        currency=data["currency"],
        tx_hash=tx_hash,
        blockchain_network=data["blockchain_network"],
        status=status,
        purpose=purpose,
    )
    db.add(payment)
    _commit(db, "creating payment", payment)
    logger.info("Recorded %s payment %s (%s)", payment.status, payment.id, payment.tx_hash)
    return payment


def get_payment(db: Session, tx_hash: str) -> Payment | None:
    if not tx_hash:
        return None
    return db.query(Payment).filter(Payment.tx_hash == tx_hash.strip()).first()


def get_payment_by_id(db: Session, payment_id: str) -> Payment | None:
    if not payment_id:
        return None
    return db.get(Payment, payment_id)


def update_payment_status(db: Session, payment_id: str, status: str) -> Payment:
    """
    Move a payment forward and mirror the outcome onto its job-posting Job.

    The job is only touched while it is still pending, so a late failure on a
    second payment never un-pays a job.
    """
    if status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status: {status}")
    payment = get_payment_by_id(db, payment_id)
    if payment is None:
        raise NotFoundError(get_error_message("payment_not_found"))
    if not _check_transition(_PAYMENT_TRANSITIONS, payment.status, status, "payment status"):
        return payment

    payment.status = status
    payment.updated_at = utcnow()
    job_status = _PAYMENT_TO_JOB_STATUS.get(status)
    if payment.purpose == "job_posting" and payment.job_id and job_status:
        job = get_job(db, payment.job_id)
        if job is not None and job.payment_status == "pending":
            set_job_payment_status(
                db,
                job,
                job_status,
                tx_hash=payment.tx_hash,
                amount=payment.amount if job_status == "paid" else None,
                commit=False,
            )
    _commit(db, "updating payment status", payment)
    return payment
