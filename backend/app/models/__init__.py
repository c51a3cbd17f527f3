from .user import User
from .job import Job
from .post import Post
from .application import JobApplication
from .connection import UserConnection
from .payment import Payment

__all__ = ["User", "Job", "Post", "JobApplication", "UserConnection", "Payment"]
