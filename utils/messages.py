"""
Centralized Spanish UI messages.
All user-facing text in Spanish for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Bienvenido {name}',
    'logout_success': 'Sesión cerrada correctamente',
    'booking_requested': 'Solicitud de cámara enviada. Recibirás confirmación pronto.',
    'booking_requested_urgent': 'Solicitud URGENTE enviada. Se notificará inmediatamente al comercial.',
    'booking_waitlisted': 'Pre-reserva registrada. Serás notificado si el horario se libera.',
    'booking_approved': 'Reserva aprobada',
    'booking_rejected': 'Reserva rechazada',
    'booking_rescheduled': 'Reserva reprogramada',
    'booking_cancelled': 'Reserva cancelada',
    'booking_cancelled_late': 'Reserva cancelada. Nota: cancelación tardía (<{hours}h) registrada.',
    'booking_completed': 'Reserva completada',
    'handoff_set': 'Traspaso configurado',
    'pickup_confirmed': 'Retiro confirmado. Recuerda devolver la cámara a tiempo.',
    'return_confirmed': 'Devolución confirmada. ¡Gracias!',
    'early_return_confirmed': 'Devolución anticipada registrada. El horario ha sido liberado.',
    'maintenance_set': 'Cámara en mantenimiento',
    'maintenance_cleared': 'Cámara disponible',

    # Error messages
    'invalid_credentials': 'Usuario o contraseña incorrectos',
    'account_disabled': 'Su cuenta ha sido desactivada. Contacte al administrador.',
    'permission_denied': 'No tiene permisos para esta acción',
    'data_required': 'Datos requeridos',
    'date_required': 'Selecciona fecha y horario',
    'invalid_date': 'Formato de fecha inválido (YYYY-MM-DD)',
    'invalid_time': 'Formato de hora inválido (HH:MM)',
    'past_date': 'La fecha debe ser hoy o futura',
    'invalid_window': 'La hora de devolución debe ser posterior a la hora de retiro',
    'invalid_same_day_window': 'La hora de retiro debe ser anterior a la hora de devolución',
    'unknown_unit': 'Cámara {unit_id} no existe',
    'unit_in_maintenance': 'Cámara {unit_id} está en mantenimiento',
    'unit_in_use': 'Cámara {unit_id} está en uso; no se puede cambiar su estado de mantenimiento',
    'unreturned_unit': 'Tienes una cámara sin devolver. Devuélvela antes de solicitar otra.',
    'waitlist_full': 'Ya hay un agente en lista de espera para este horario. No se pueden agregar más.',
    'slot_unavailable': 'El horario seleccionado no está disponible para la cámara {unit_id}',
    'slot_taken': 'El horario acaba de ser tomado por otra reserva',
    'concurrency_conflict': 'Otra operación está en curso. Intenta nuevamente.',
    'booking_not_found': 'Reserva no encontrada',
    'invalid_transition': 'No se puede pasar de "{from_status}" a "{to_status}"',
    'reject_reason_required': 'Agrega un motivo de rechazo',
    'reschedule_fields_required': 'Completa todos los campos de reprogramación',
    'reschedule_not_allowed': 'Solo se pueden reprogramar reservas pendientes o aprobadas',
    'reschedule_unit_in_custody': 'No se puede cambiar la cámara de una reserva retirada',
    'cancel_in_custody': 'La cámara ya fue retirada; confirma la devolución en lugar de cancelar',
    'cancel_not_owner': 'Solo el agente que reservó o un administrador puede cancelar',
    'complete_requires_custody': 'Solo se puede completar una reserva con retiro confirmado y sin devolución',
    'handoff_agent_required': 'Selecciona un agente de traspaso',
    'handoff_not_allowed': 'Solo se puede configurar traspaso en reservas aprobadas',
    'checklist_incomplete': 'Verifica todos los ítems del checklist antes de confirmar',
    'pickup_not_allowed': 'Solo se puede retirar una cámara de una reserva aprobada',
    'pickup_already_confirmed': 'El retiro ya fue confirmado',
    'return_without_pickup': 'No se puede devolver una cámara que no fue retirada',
    'return_already_confirmed': 'La devolución ya fue confirmada',
    'custody_not_owner': 'Solo el agente que reservó o un administrador puede confirmar',

    # Info messages
    'no_results': 'Sin resultados',
}

# Status display labels
BOOKING_STATUS_LABELS = {
    'pending': 'Pendiente',
    'approved': 'Aprobada',
    'rejected': 'Rechazada',
    'completed': 'Completada',
    'cancelled': 'Cancelada',
    'waitlisted': 'Lista de Espera',
}

UNIT_STATUS_LABELS = {
    'available': 'Libre',
    'in_use': 'En uso',
    'maintenance': 'Mantenimiento',
}
