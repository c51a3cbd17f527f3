"""camelCase public views of the ORM records. Credential hashes never leave here."""
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..models import Job, JobApplication, Payment, Post, User, UserConnection


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def _amount(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return format(Decimal(value).normalize(), "f")


def user_to_public(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "bio": user.bio,
        "title": user.title,
        "linkedinUrl": user.linkedin_url,
        "walletAddress": user.wallet_address,
        "walletType": user.wallet_type,
        "skills": list(user.skills or []),
        "profileImageUrl": user.profile_image_url,
        "profileStrength": int(user.profile_strength or 0),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def job_to_public(job: Job | None) -> dict[str, Any] | None:
    if job is None:
        return None
    return {
        "id": job.id,
        "title": job.title,
        "company": job.company,
        "description": job.description,
        "location": job.location,
        "salaryRange": job.salary_range,
        "requiredSkills": list(job.required_skills or []),
        "employmentType": job.employment_type,
        "isRemote": bool(job.is_remote),
        "postedBy": job.posted_by,
        "paymentStatus": job.payment_status,
        "paymentTxHash": job.payment_tx_hash,
        "paymentAmount": _amount(job.payment_amount),
        "isActive": bool(job.is_active),
        "createdAt": _iso(job.created_at),
        "updatedAt": _iso(job.updated_at),
    }


def post_to_public(post: Post, include_author: bool = False) -> dict[str, Any]:
    out = {
        "id": post.id,
        "content": post.content,
        "authorId": post.author_id,
        "type": post.type,
        "mediaUrls": list(post.media_urls or []),
        "tags": list(post.tags or []),
        "jobId": post.job_id,
        "likes": int(post.likes or 0),
        "comments": int(post.comments or 0),
        "shares": int(post.shares or 0),
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }
    if include_author:
        out["author"] = user_to_public(post.author)
    return out


def application_to_public(
    application: JobApplication,
    include_applicant: bool = False,
    include_job: bool = False,
) -> dict[str, Any]:
    out = {
        "id": application.id,
        "jobId": application.job_id,
        "applicantId": application.applicant_id,
        "status": application.status,
        "matchScore": application.match_score,
        "coverLetter": application.cover_letter,
        "resumeUrl": application.resume_url,
        "createdAt": _iso(application.created_at),
        "updatedAt": _iso(application.updated_at),
    }
    if include_applicant:
        out["applicant"] = user_to_public(application.applicant)
    if include_job:
        out["job"] = job_to_public(application.job)
    return out


def connection_to_public(connection: UserConnection, include_users: bool = False) -> dict[str, Any]:
    out = {
        "id": connection.id,
        "requesterId": connection.requester_id,
        "recipientId": connection.recipient_id,
        "status": connection.status,
        "createdAt": _iso(connection.created_at),
        "updatedAt": _iso(connection.updated_at),
    }
    if include_users:
        out["requester"] = user_to_public(connection.requester)
        out["recipient"] = user_to_public(connection.recipient)
    return out


def payment_to_public(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "userId": payment.user_id,
        "jobId": payment.job_id,
        "amount": _amount(payment.amount),
        "currency": payment.currency,
        "txHash": payment.tx_hash,
        "blockchainNetwork": payment.blockchain_network,
        "status": payment.status,
        "purpose": payment.purpose,
        "createdAt": _iso(payment.created_at),
        "updatedAt": _iso(payment.updated_at),
    }
