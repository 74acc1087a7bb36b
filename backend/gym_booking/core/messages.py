# backend/gym_booking/core/messages.py
"""
User-facing admission messages.

Spanish is the product default; English is available for staff tooling and
API clients that opt in through ``DEFAULT_LOCALE``. Templates use
``str.format`` placeholders.
"""

from typing import Any, Dict, Optional

from .config import settings

MESSAGES: Dict[str, Dict[str, str]] = {
    "es": {
        "class_unavailable": "La clase no existe o fue cancelada",
        "class_cancelled": "La clase ha sido cancelada",
        "class_already_started": "No puedes reservar una clase que ya comenzo",
        "booking_window_closed": "Las reservas cierran {minutes} minutos antes de la clase",
        "booking_window_not_open_days": (
            "Las reservas abren {days} dias antes de la clase (faltan {remaining} dias)"
        ),
        "booking_window_not_open_hours": (
            "Las reservas abren {hours} horas antes de la clase (faltan {remaining} horas)"
        ),
        "daily_limit_reached": "Ya alcanzaste el maximo de {limit} clases para este dia",
        "already_booked_confirmed": "Ya tienes una reserva confirmada para esta clase",
        "already_booked_waitlist": "Ya estas en la lista de espera para esta clase",
        "already_booked": "Ya tienes una reserva para esta clase",
        "class_full": "La clase esta llena y no tiene lista de espera",
        "waitlist_full": "La lista de espera esta llena",
        "booking_not_found": "Reserva no encontrada",
        "already_final": "La reserva ya esta cancelada",
        "already_checked_in": "El check-in ya fue realizado",
        "already_no_show": "La reserva ya fue marcada como inasistencia",
        "cannot_cancel_past": "No puedes cancelar una clase que ya ocurrio",
        "cancellation_deadline": "No puedes cancelar con menos de {hours} horas de anticipacion",
        "waitlist_not_checkable": "No se puede registrar asistencia de una reserva en lista de espera",
        "member_cancelled": "Cancelado por el miembro",
        "member_not_found": "Miembro no encontrado",
        "member_inactive": "Tu cuenta no esta activa",
        "no_membership": "No tienes una membresia activa",
        "membership_expired": "Tu membresia vencio el {end_date}",
        "membership_not_active": "Tu membresia no esta activa",
        "storage_conflict": "Hubo un conflicto al procesar la reserva, intenta de nuevo",
        "storage_timeout": "La operacion tardo demasiado, intenta de nuevo",
        "storage_error": "No se pudo completar la operacion",
    },
    "en": {
        "class_unavailable": "Class not found or cancelled",
        "class_cancelled": "This class has been cancelled",
        "class_already_started": "You cannot book a class that has already started",
        "booking_window_closed": "Bookings close {minutes} minutes before class",
        "booking_window_not_open_days": (
            "Bookings open {days} days before class ({remaining} days remaining)"
        ),
        "booking_window_not_open_hours": (
            "Bookings open {hours} hours before class ({remaining} hours remaining)"
        ),
        "daily_limit_reached": "You already reached the maximum of {limit} classes for this day",
        "already_booked_confirmed": "You already have a confirmed booking for this class",
        "already_booked_waitlist": "You are already on the waitlist for this class",
        "already_booked": "You already have a booking for this class",
        "class_full": "The class is full and has no waitlist",
        "waitlist_full": "The waitlist is full",
        "booking_not_found": "Booking not found",
        "already_final": "The booking is already cancelled",
        "already_checked_in": "Check-in was already recorded",
        "already_no_show": "The booking was already marked as no-show",
        "cannot_cancel_past": "You cannot cancel a class that already happened",
        "cancellation_deadline": "You cannot cancel less than {hours} hours in advance",
        "waitlist_not_checkable": "A waitlisted booking cannot be checked in",
        "member_cancelled": "Cancelled by member",
        "member_not_found": "Member not found",
        "member_inactive": "Your account is not active",
        "no_membership": "You do not have an active membership",
        "membership_expired": "Your membership expired on {end_date}",
        "membership_not_active": "Your membership is not active",
        "storage_conflict": "The booking conflicted with another request, please retry",
        "storage_timeout": "The operation timed out, please retry",
        "storage_error": "The operation could not be completed",
    },
}


def get_message(key: str, locale: Optional[str] = None, **params: Any) -> str:
    """Render a catalog message, falling back to the default locale and then the key."""
    catalog = MESSAGES.get(locale or settings.default_locale) or MESSAGES["es"]
    template = catalog.get(key) or MESSAGES["es"].get(key)
    if template is None:
        return key
    return template.format(**params) if params else template
