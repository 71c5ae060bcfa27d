"""
Booking Command Handlers

The use cases of the booking engine. Each handler runs one attempt inside
a single DjangoUnitOfWork: the selected room types are locked, the booking
is assembled and checked again under the lock, then written. A rejection
or a failed write rolls everything back.

Commands:
- CreateBookingCommand: book one or more cabins for a stay
- EditBookingCommand: re-price and re-save an existing booking or group
- BookPackageCommand: book a fixed-price package for one cabin
- BlockDatesCommand / UnblockDatesCommand: take cabins off sale or back on
- ChangeStatusCommand: move a booking (and its group) to a new status
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Union
import logging

from django.db import DatabaseError

from shared.application.message_bus import message_bus
from shared.application.uow import DjangoUnitOfWork
from apps.catalog.domain import ExtraLine
from apps.catalog.repositories import CatalogRepository
from apps.coupons.domain import CouponRejected, CouponRejection, normalize_code
from apps.coupons.repositories import CouponRepository
from apps.bookings.domain.assembler import (
    BookingAssembler,
    BookingRequest,
    BookingResult,
    PackageTerms,
    RoomOffer,
)
from apps.bookings.domain.availability import AvailabilityResolver, UnitRef
from apps.bookings.domain.calendar import to_date_range
from apps.bookings.domain.entities import BookingPlan, GuestDetails
from apps.bookings.domain.events import BookingCreated, BookingUpdated
from apps.bookings.domain.group import GroupCoordinator
from apps.bookings.domain.pricing import NightlyRates
from apps.bookings.exceptions import BookingRejected, InvalidBookingRequest
from apps.bookings.models import Reservation
from apps.bookings.repositories import BlockedDateRepository, DjangoAvailabilityStore, ReservationRepository

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to book one or more cabins for the same stay

    ``rooms`` holds room type ids or codes; the first one leads the group.
    ``extras`` maps extra ids to quantities.
    """
    rooms: Sequence
    check_in: Union[date, str]
    check_out: Union[date, str]
    guest: GuestDetails = field(default_factory=GuestDetails)
    extras: Dict[str, int] = field(default_factory=dict)
    coupon_code: str = ''
    status: str = Reservation.Status.PENDING
    payment_status: str = Reservation.PaymentStatus.UNPAID
    price_override_per_night: Optional[Decimal] = None
    is_influencer: bool = False
    notes: str = ''
    send_email: bool = True


@dataclass
class EditBookingCommand:
    """
    Command to edit an existing booking

    Fields left as None keep their stored value. An empty ``coupon_code``
    removes the coupon.
    """
    reservation_id: int
    rooms: Optional[Sequence] = None
    check_in: Optional[Union[date, str]] = None
    check_out: Optional[Union[date, str]] = None
    guest: Optional[GuestDetails] = None
    extras: Optional[Dict[str, int]] = None
    coupon_code: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    price_override_per_night: Optional[Decimal] = None
    clear_price_override: bool = False
    is_influencer: Optional[bool] = None
    notes: Optional[str] = None
    send_email: bool = False


@dataclass
class BookPackageCommand:
    package_id: int
    room: object
    check_in: Union[date, str]
    check_out: Union[date, str]
    guest: GuestDetails = field(default_factory=GuestDetails)
    status: str = Reservation.Status.CONFIRMED
    payment_status: str = Reservation.PaymentStatus.UNPAID
    notes: str = ''
    send_email: bool = True


@dataclass
class BlockDatesCommand:
    rooms: Sequence
    start: date
    end: date
    reason: str = 'maintenance'


@dataclass
class UnblockDatesCommand:
    rooms: Sequence
    start: date
    end: date


@dataclass
class ChangeStatusCommand:
    """Status and payment transitions; cancelling is a status change, rows are kept"""
    reservation_id: int
    status: Optional[str] = None
    payment_status: Optional[str] = None


# ===== Helpers =====

def build_assembler() -> BookingAssembler:
    return BookingAssembler(
        availability=AvailabilityResolver(DjangoAvailabilityStore()),
        find_coupons=CouponRepository().find_by_code,
        find_extras=CatalogRepository().extras_by_id,
    )


def _match_rooms(refs: Sequence, rooms: List) -> List:
    """Rooms in the order they were requested; unknown references are rejected"""
    by_id = {str(room.pk): room for room in rooms}
    by_code = {room.code.upper(): room for room in rooms}
    matched = []
    for ref in refs:
        text = str(ref).strip()
        room = by_id.get(text) if text.isdigit() else by_code.get(text.upper())
        if room is None:
            raise InvalidBookingRequest(f"Unknown cabin {ref}")
        matched.append(room)
    return matched


def _room_offers(rooms: List, allow_inactive=(), fixed_subtotals: Sequence = ()) -> List[RoomOffer]:
    """Offers in request order; ``fixed_subtotals`` pins the price of the cabin at the same position"""
    offers = []
    for index, room in enumerate(rooms):
        unit = UnitRef(id=room.pk, code=room.code, name=room.name)
        if not room.is_active and room.pk not in allow_inactive:
            raise InvalidBookingRequest(f"{unit.label} is not open for booking")
        offers.append(
            RoomOffer(
                unit=unit,
                rates=NightlyRates.from_room(room),
                max_adults=room.max_adults,
                fixed_subtotal=fixed_subtotals[index] if index < len(fixed_subtotals) else None,
            )
        )
    return offers


def _package_terms(package, extras) -> PackageTerms:
    return PackageTerms(
        id=package.pk,
        code=package.code,
        name=package.name,
        price=package.package_price,
        nights=package.nights,
        extras=tuple(extras),
        room_type_ids=tuple(room.pk for room in package.room_types.all()),
        valid_from=package.valid_from,
        valid_until=package.valid_until,
    )


class _BookingWriter:
    """Shared plumbing for the handlers that write reservations"""

    def __init__(self, assembler=None, reservations=None, coupons=None, catalog=None, coordinator=None):
        self.assembler = assembler or build_assembler()
        self.reservations = reservations or ReservationRepository()
        self.coupons = coupons or CouponRepository()
        self.catalog = catalog or CatalogRepository()
        self.coordinator = coordinator or GroupCoordinator()

    def _run(self, attempt) -> BookingResult:
        """Run ``attempt(uow)`` in a unit of work and turn failures into a result"""
        try:
            with DjangoUnitOfWork() as uow:
                result = attempt(uow)
                if not result.ok:
                    return result
        except (BookingRejected, CouponRejected) as e:
            result = BookingResult.rejected(e)
            logger.warning(f"Booking rejected ({result.code}): {result.reason}")
            return result
        except DatabaseError as e:
            logger.error(f"Booking write failed, transaction rolled back: {e}", exc_info=True)
            return BookingResult.failed(str(e))
        return result

    def _redeem(self, plan: BookingPlan):
        if plan.coupon is None or plan.coupon.coupon.id is None:
            return
        if not self.coupons.redeem(plan.coupon.coupon.id):
            raise CouponRejected(CouponRejection.EXHAUSTED, "This coupon has reached its usage limit")

    def _create(self, uow, plan: BookingPlan, send_email: bool) -> BookingResult:
        plan.group_code = self.coordinator.assign_new(plan.drafts).group_code
        self._redeem(plan)
        rows = self.reservations.create(plan)
        plan.add_event(BookingCreated(
            aggregate_id=plan.id,
            reservation_ids=[row.pk for row in rows],
            confirmation_code=plan.leader.confirmation_code,
            group_code=plan.group_code,
            send_email=send_email,
        ))
        uow.collect_events(plan)
        return BookingResult.accepted(plan)


# ===== Command Handlers =====

class CreateBookingHandler(_BookingWriter):
    """
    Handler for CreateBooking command

    1. Lock the selected room types (ordered by id)
    2. Assemble: validate, check availability, price, apply coupon
    3. Count the coupon use with a guarded update
    4. Write leader and members, then publish BookingCreated after commit
    """

    def handle(self, command: CreateBookingCommand) -> BookingResult:
        logger.info(
            f"Creating booking for {command.guest.full_name or 'guest'}: rooms {list(command.rooms)}, "
            f"dates {command.check_in} - {command.check_out}"
        )
        result = self._run(lambda uow: self._attempt(uow, command))
        if result.ok:
            logger.info(
                f"Booking created successfully: {result.plan.leader.confirmation_code} "
                f"({len(result.drafts)} cabin(s), total {result.plan.total})"
            )
        return result

    def _attempt(self, uow, command: CreateBookingCommand) -> BookingResult:
        if not command.rooms:
            raise InvalidBookingRequest("Please select at least one cabin")
        rooms = _match_rooms(command.rooms, uow.lock(self.catalog.rooms_query(command.rooms)))
        result = self.assembler.assemble(BookingRequest(
            rooms=_room_offers(rooms),
            check_in=command.check_in,
            check_out=command.check_out,
            guest=command.guest,
            extra_quantities=command.extras,
            coupon_code=command.coupon_code,
            price_override_per_night=command.price_override_per_night,
            currency=rooms[0].currency,
        ))
        if not result.ok:
            return result

        plan = result.plan
        plan.status = command.status
        plan.payment_status = command.payment_status
        plan.is_influencer = command.is_influencer
        plan.notes = command.notes
        return self._create(uow, plan, command.send_email)


class BookPackageHandler(_BookingWriter):
    """
    Handler for BookPackage command

    The package price is the whole price: the included extras are carved
    out of it and the rest becomes the room subtotal. No coupon applies.
    """

    def handle(self, command: BookPackageCommand) -> BookingResult:
        logger.info(f"Booking package {command.package_id} for room {command.room}")
        result = self._run(lambda uow: self._attempt(uow, command))
        if result.ok:
            logger.info(f"Package booking created: {result.plan.leader.confirmation_code}")
        return result

    def _attempt(self, uow, command: BookPackageCommand) -> BookingResult:
        package = self.catalog.get_package(command.package_id)
        if package is None:
            raise InvalidBookingRequest(f"Package {command.package_id} not found or not active")

        rooms = _match_rooms([command.room], uow.lock(self.catalog.rooms_query([command.room])))
        result = self.assembler.assemble(BookingRequest(
            rooms=_room_offers(rooms),
            check_in=command.check_in,
            check_out=command.check_out,
            guest=command.guest,
            package=_package_terms(package, self.catalog.package_extras(package)),
            currency=package.currency,
        ))
        if not result.ok:
            return result

        plan = result.plan
        plan.status = command.status
        plan.payment_status = command.payment_status
        plan.notes = command.notes
        return self._create(uow, plan, command.send_email)


class EditBookingHandler(_BookingWriter):
    """
    Handler for EditBooking command

    The booking is re-assembled with its own rows (and every group
    sibling) excluded from the availability check, then written back by
    position: matching rows are updated, added cabins become new members,
    surplus rows are deleted. Extras are replaced wholesale. A coupon the
    booking already holds is not counted again.

    Package bookings stay under their package rules: the stored room
    price and bundled extras are kept, and coupons are refused.
    """

    def handle(self, command: EditBookingCommand) -> BookingResult:
        logger.info(f"Editing booking {command.reservation_id}")
        result = self._run(lambda uow: self._attempt(uow, command))
        if result.ok:
            logger.info(f"Booking {result.plan.leader.confirmation_code} updated successfully")
        return result

    def _attempt(self, uow, command: EditBookingCommand) -> BookingResult:
        reservation = self.reservations.get(command.reservation_id)
        rows = self.reservations.load_group(reservation)
        uow.lock(Reservation.objects.filter(pk__in=[row.pk for row in rows]).order_by('pk'))
        leader = rows[0]

        room_refs = list(command.rooms) if command.rooms is not None else [
            row.room_type_id or row.room_type_code for row in rows
        ]
        if not room_refs:
            raise InvalidBookingRequest("Please select at least one cabin")
        rooms = _match_rooms(room_refs, uow.lock(self.catalog.rooms_query(room_refs)))

        package = None
        fixed: List[Optional[Decimal]] = []
        extra_quantities = command.extras if command.extras is not None else self._stored_extras(leader)
        if leader.package_id:
            package = self._sold_package(leader, command)
            # rows keep the room price they were sold at, cabin by cabin
            fixed = [row.room_subtotal for row in rows]

        if command.clear_price_override:
            price_override = None
        elif command.price_override_per_night is not None:
            price_override = command.price_override_per_night
        else:
            price_override = leader.price_override_per_night

        result = self.assembler.assemble(BookingRequest(
            rooms=_room_offers(
                rooms,
                allow_inactive={row.room_type_id for row in rows},
                fixed_subtotals=fixed,
            ),
            check_in=command.check_in or leader.check_in,
            check_out=command.check_out or leader.check_out,
            guest=command.guest or self._stored_guest(rows),
            extra_quantities=extra_quantities,
            coupon_code=command.coupon_code if command.coupon_code is not None else leader.coupon_code,
            current_coupon_code=leader.coupon_code,
            package=package,
            price_override_per_night=price_override,
            exclude_ids=[row.pk for row in rows],
            currency=leader.currency,
        ))
        if not result.ok:
            return result

        plan = result.plan
        plan.package_id = leader.package_id
        plan.status = command.status or leader.status
        plan.payment_status = command.payment_status or leader.payment_status
        plan.is_influencer = leader.is_influencer if command.is_influencer is None else command.is_influencer
        plan.notes = leader.notes if command.notes is None else command.notes

        layout = self.coordinator.reconcile(plan.drafts, self.reservations.as_existing(rows))
        plan.group_code = layout.group_code
        plan.removed_ids = layout.removed_ids

        if plan.coupon and normalize_code(plan.coupon.code) != normalize_code(leader.coupon_code):
            self._redeem(plan)

        saved = self.reservations.update(plan)
        plan.add_event(BookingUpdated(
            aggregate_id=plan.id,
            reservation_ids=[row.pk for row in saved],
            confirmation_code=plan.leader.confirmation_code,
            group_code=plan.group_code,
            send_email=command.send_email,
        ))
        uow.collect_events(plan)
        return BookingResult.accepted(plan)

    def _sold_package(self, leader: Reservation, command: EditBookingCommand) -> PackageTerms:
        """Terms of the package the booking was sold under, with the extras it was sold with"""
        stored = self._stored_extras(leader)
        if command.extras is not None:
            wanted = {str(key): int(qty) for key, qty in command.extras.items() if int(qty) > 0}
            if wanted != stored:
                raise InvalidBookingRequest("Package extras cannot be modified")
        package = self.catalog.get_package(leader.package_id, active_only=False)
        if package is None:
            raise InvalidBookingRequest(f"Package {leader.package_id} not found")
        lines = [
            ExtraLine(
                extra_id=str(line.extra_id or ""),
                price=line.price,
                quantity=line.quantity,
                code=line.extra_code,
                name=line.extra_name,
            )
            for line in leader.extras.all()
        ]
        return _package_terms(package, lines)

    @staticmethod
    def _stored_guest(rows: List[Reservation]) -> GuestDetails:
        leader = rows[0]
        return GuestDetails(
            first_name=leader.guest_first_name,
            last_name=leader.guest_last_name,
            email=leader.guest_email,
            country_code=leader.country_code,
            phone=leader.guest_phone,
            adults=sum(row.adults for row in rows),
            children=sum(row.children for row in rows),
        )

    @staticmethod
    def _stored_extras(leader: Reservation) -> Dict[str, int]:
        quantities: Dict[str, int] = {}
        for line in leader.extras.all():
            if line.extra_id:
                key = str(line.extra_id)
                quantities[key] = quantities.get(key, 0) + line.quantity
        return quantities


class BlockDatesHandler:
    """Handler for BlockDates command: one blocked row per cabin per night, replacing older ones"""

    def __init__(self, blocked_dates=None, catalog=None):
        self.blocked_dates = blocked_dates or BlockedDateRepository()
        self.catalog = catalog or CatalogRepository()

    def handle(self, command: BlockDatesCommand) -> int:
        dates, room_ids = _block_target(self.catalog, command.rooms, command.start, command.end)
        with DjangoUnitOfWork():
            created = self.blocked_dates.block(room_ids, dates, command.reason)
        logger.info(f"Blocked {dates} for rooms {room_ids} ({command.reason}): {created} row(s)")
        return created


class UnblockDatesHandler:
    def __init__(self, blocked_dates=None, catalog=None):
        self.blocked_dates = blocked_dates or BlockedDateRepository()
        self.catalog = catalog or CatalogRepository()

    def handle(self, command: UnblockDatesCommand) -> int:
        dates, room_ids = _block_target(self.catalog, command.rooms, command.start, command.end)
        with DjangoUnitOfWork():
            deleted = self.blocked_dates.unblock(room_ids, dates)
        logger.info(f"Unblocked {dates} for rooms {room_ids}: {deleted} row(s)")
        return deleted


def _block_target(catalog: CatalogRepository, refs: Sequence, start, end):
    if not refs:
        raise InvalidBookingRequest("Please select at least one cabin to block.")
    if start is None or end is None:
        raise InvalidBookingRequest("Please select both start and end dates.")
    dates = to_date_range(start, end)
    if dates is None:
        raise InvalidBookingRequest("End date must be after start date.")
    rooms = _match_rooms(refs, list(catalog.rooms_query(refs)))
    return dates, [room.pk for room in rooms]


class ChangeStatusHandler:
    """Handler for ChangeStatus command; applies to every reservation of the group"""

    def __init__(self, reservations=None):
        self.reservations = reservations or ReservationRepository()

    def handle(self, command: ChangeStatusCommand) -> List[Reservation]:
        if not command.status and not command.payment_status:
            raise InvalidBookingRequest("Nothing to change: give a status or a payment status")
        if command.status and command.status not in Reservation.Status.values:
            raise InvalidBookingRequest(f"Unknown status {command.status}")
        if command.payment_status and command.payment_status not in Reservation.PaymentStatus.values:
            raise InvalidBookingRequest(f"Unknown payment status {command.payment_status}")

        with DjangoUnitOfWork():
            reservation = self.reservations.get(command.reservation_id)
            rows = self.reservations.load_group(reservation)
            self.reservations.set_status(rows, command.status, command.payment_status)

        logger.info(
            f"Booking {reservation.confirmation_code}: status={command.status or '-'}, "
            f"payment={command.payment_status or '-'} ({len(rows)} reservation(s))"
        )
        return self.reservations.load_group(self.reservations.get(reservation.pk))


# ===== Registration =====

def handle_create_booking(command: CreateBookingCommand) -> BookingResult:
    return CreateBookingHandler().handle(command)


def handle_edit_booking(command: EditBookingCommand) -> BookingResult:
    return EditBookingHandler().handle(command)


def handle_book_package(command: BookPackageCommand) -> BookingResult:
    return BookPackageHandler().handle(command)


def handle_block_dates(command: BlockDatesCommand) -> int:
    return BlockDatesHandler().handle(command)


def handle_unblock_dates(command: UnblockDatesCommand) -> int:
    return UnblockDatesHandler().handle(command)


def handle_change_status(command: ChangeStatusCommand) -> List[Reservation]:
    return ChangeStatusHandler().handle(command)


def register_handlers():
    """Wire commands and events to the message bus; called from BookingsConfig.ready()"""
    from apps.bookings.application.event_handlers import send_confirmation_email

    message_bus.register_command_handler(CreateBookingCommand, handle_create_booking)
    message_bus.register_command_handler(EditBookingCommand, handle_edit_booking)
    message_bus.register_command_handler(BookPackageCommand, handle_book_package)
    message_bus.register_command_handler(BlockDatesCommand, handle_block_dates)
    message_bus.register_command_handler(UnblockDatesCommand, handle_unblock_dates)
    message_bus.register_command_handler(ChangeStatusCommand, handle_change_status)

    message_bus.register_event_handler(BookingCreated, send_confirmation_email)
    message_bus.register_event_handler(BookingUpdated, send_confirmation_email)
