# accounts/models.py
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models

from .permission_defaults import permissions_for_user


class UserManager(BaseUserManager):
    """Users are keyed by email; there is no username."""

    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("The given email must be set")
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.update(is_staff=True, is_superuser=True)
        extra_fields.setdefault("role", User.Role.ADMIN)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Application user.

    The role decides the permission set (see permission_defaults):
    finance managers post and approve, project managers run projects,
    viewers read. Role assignment itself is done through the admin.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        FINANCE_MANAGER = "FINANCE_MANAGER", "Finance Manager"
        PROJECT_MANAGER = "PROJECT_MANAGER", "Project Manager"
        VIEWER = "VIEWER", "Viewer"

    username = None
    email = models.EmailField("email address", unique=True)
    name = models.CharField(max_length=150)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.VIEWER)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    def __str__(self):
        return f"{self.name} <{self.email}>" if self.name else self.email

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def permission_codes(self) -> frozenset:
        return permissions_for_user(self)
