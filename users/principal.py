from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request.

    Only the user id and role are carried; anything else (profile ids,
    verification flags, ownership) is read from the database when needed.
    """
    user_id: int
    role: str

    @classmethod
    def for_user(cls, user):
        return cls(user_id=user.id, role=user.role)

    @property
    def is_student(self):
        return self.role == 'student'

    @property
    def is_employer(self):
        return self.role == 'employer'

    @property
    def is_admin(self):
        return self.role == 'admin'
