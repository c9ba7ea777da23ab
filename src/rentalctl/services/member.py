"""MemberService — membership registration, tiers and account state."""

from __future__ import annotations

from datetime import datetime

import structlog

from rentalctl.domain.errors import DomainError, DuplicateEmailError, InvalidInputError
from rentalctl.domain.member import Member
from rentalctl.domain.types import MembershipTier
from rentalctl.services._helpers import parse_choice, resolve_now, snapshot
from rentalctl.services.base import BaseService
from rentalctl.services.result import ServiceResult
from rentalctl.services.telemetry import traced

log = structlog.get_logger(__name__)


def _member_data(member: Member) -> dict[str, object]:
    data = snapshot(member)
    data["discount_percent"] = str(member.discount_percent)
    data["max_concurrent_rentals"] = member.max_concurrent_rentals
    data["max_rental_days"] = member.max_rental_days
    return data


class MemberService(BaseService):
    """Registers members and manages tier and activation state."""

    @traced
    def register_member(
        self,
        *,
        name: str,
        email: str,
        tier: MembershipTier | str = MembershipTier.BASIC,
        join_date: datetime | None = None,
    ) -> ServiceResult:
        op = "register_member"
        try:
            member = Member.create(
                name=name,
                email=email,
                tier=parse_choice(MembershipTier, tier, field="tier"),
                join_date=resolve_now(join_date),
            )
            with self._store.transaction() as uow:
                if uow.members.find_by_email(member.email) is not None:
                    raise DuplicateEmailError(member.email)
                uow.members.save(member)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        log.info("member.registered", member_id=member.id, tier=str(member.tier))
        return ServiceResult(ok=True, op=op, data={"member": _member_data(member)})

    @traced
    def get_member(self, member_id: str) -> ServiceResult:
        op = "get_member"
        try:
            with self._store.read() as uow:
                member = self._member(uow, member_id)
                live = uow.rentals.find_live_by_member(member_id)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={"member": _member_data(member), "live_rentals": [r.id for r in live]},
        )

    @traced
    def list_members(
        self,
        *,
        tier: MembershipTier | str | None = None,
        active_only: bool = False,
    ) -> ServiceResult:
        op = "list_members"
        try:
            wanted = parse_choice(MembershipTier, tier, field="tier") if tier else None
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        with self._store.read() as uow:
            if wanted is not None:
                items = uow.members.find_by_tier(wanted)
            elif active_only:
                items = uow.members.find_active()
            else:
                items = uow.members.find_all()
        if wanted is not None and active_only:
            items = [m for m in items if m.is_active]
        return ServiceResult(
            ok=True,
            op=op,
            data={"items": [_member_data(m) for m in items], "count": len(items)},
        )

    @traced
    def change_tier(self, member_id: str, tier: MembershipTier | str) -> ServiceResult:
        """Move a member to another tier. Live rentals keep the terms they were booked on."""
        op = "change_tier"
        warnings: list[str] = []
        try:
            new_tier = parse_choice(MembershipTier, tier, field="tier")
            with self._store.transaction() as uow:
                before = self._member(uow, member_id)
                member = before.change_tier(new_tier)
                uow.members.save(member)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)

        if member.active_rental_count > member.max_concurrent_rentals:
            warnings.append(
                f"Member has {member.active_rental_count} active rentals, above the "
                f"{new_tier} limit of {member.max_concurrent_rentals}"
            )
        log.info(
            "member.tier_changed",
            member_id=member_id,
            before=str(before.tier),
            after=str(new_tier),
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"member": _member_data(member), "previous_tier": str(before.tier)},
            warnings=warnings,
        )

    @traced
    def deactivate_member(self, member_id: str) -> ServiceResult:
        op = "deactivate_member"
        try:
            with self._store.transaction() as uow:
                member = self._member(uow, member_id).deactivate()
                uow.members.save(member)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        log.info("member.deactivated", member_id=member_id)
        return ServiceResult(ok=True, op=op, data={"member": _member_data(member)})

    @traced
    def reactivate_member(self, member_id: str) -> ServiceResult:
        op = "reactivate_member"
        try:
            with self._store.transaction() as uow:
                member = self._member(uow, member_id).reactivate()
                uow.members.save(member)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        log.info("member.reactivated", member_id=member_id)
        return ServiceResult(ok=True, op=op, data={"member": _member_data(member)})

    @traced
    def update_contact(
        self,
        member_id: str,
        *,
        name: str | None = None,
        email: str | None = None,
    ) -> ServiceResult:
        op = "update_contact"
        try:
            if name is None and email is None:
                raise InvalidInputError("Nothing to update: give a name or an email")
            with self._store.transaction() as uow:
                member = self._member(uow, member_id)
                if name is not None:
                    member = member.update_name(name)
                if email is not None:
                    member = member.update_email(email)
                    other = uow.members.find_by_email(member.email)
                    if other is not None and other.id != member_id:
                        raise DuplicateEmailError(member.email)
                uow.members.save(member)
        except DomainError as exc:
            return ServiceResult.failure(op, exc)
        log.info("member.contact_updated", member_id=member_id)
        return ServiceResult(ok=True, op=op, data={"member": _member_data(member)})
