from dataclasses import dataclass

from .models import User


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller, built once per request and passed down explicitly."""

    user_id: int
    role: str

    @classmethod
    def from_request(cls, request):
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated:
            return None
        return cls.from_user(user)

    @classmethod
    def from_user(cls, user):
        return cls(user_id=user.pk, role=User.Role(user.role))

    @property
    def is_admin(self):
        return self.role == User.Role.ADMIN

    def can_view_booking(self, booking):
        if self.role == User.Role.ADMIN:
            return True
        if self.role == User.Role.EMPLOYEE:
            return booking.employee_id == self.user_id
        if self.role == User.Role.CUSTOMER:
            return booking.customer_id == self.user_id
        raise ValueError(f"Unhandled role: {self.role}")

    def can_cancel_booking(self, booking):
        if self.role == User.Role.ADMIN:
            return True
        if self.role in (User.Role.EMPLOYEE, User.Role.CUSTOMER):
            return booking.customer_id == self.user_id
        raise ValueError(f"Unhandled role: {self.role}")
