"""Account notice DTO (subject/body rendering is plain text; templates are external)."""

from dataclasses import dataclass

from hive_admin.shared.enums import NoticeKind


@dataclass(frozen=True)
class AccountNotice:
    """What to tell a user after their account changed."""

    kind: NoticeKind
    email: str
    name: str | None
    role_name: str | None
    tenant_name: str | None
    login_url: str

    @property
    def subject(self) -> str:
        if self.kind == NoticeKind.CREATED:
            return "Your account has been created"
        if self.kind == NoticeKind.DEACTIVATED:
            return "Your account has been deactivated"
        return "Your account has been updated"

    @property
    def body(self) -> str:
        greeting = f"Hello {self.name}," if self.name else "Hello,"
        lines = [greeting, ""]
        if self.kind == NoticeKind.DEACTIVATED:
            lines.append("Your access has been deactivated by an administrator.")
        else:
            where = f" in {self.tenant_name}" if self.tenant_name else ""
            role = self.role_name or "no role"
            lines.append(f"Your account{where} now has the role: {role}.")
            lines.append(f"Sign in at {self.login_url}")
        return "\n".join(lines)
