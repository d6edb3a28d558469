"""
Domain events logging helpers.

Provides structured event logging for payment and appointment operations.
"""
from typing import Dict, Optional
from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'payment_batch_created')
        entity_type: Type of entity (e.g., 'PaymentBatch', 'Appointment')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, failure, ignored, blocked)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'payment_batch_created',
            entity_type='PaymentBatch',
            entity_id=batch.id,
            entity_ids={'psychologist_id': batch.psychologist_id},
            item_count=3,
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked', 'ignored']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_consistency_checkpoint(
    checkpoint_name: str,
    entity_ids: Dict[str, str],
    checks_passed: Dict[str, bool],
    **extra_fields
):
    """
    Log a consistency checkpoint event.

    Used to verify data integrity at critical points.

    Example:
        log_consistency_checkpoint(
            'payment_batch_totals',
            entity_ids={'batch_id': batch.id},
            checks_passed={'gross_matches_items': True, 'net_matches_items': True},
            item_count=2,
        )
    """
    all_passed = all(checks_passed.values())

    event_data = {
        'event': 'consistency_checkpoint',
        'checkpoint': checkpoint_name,
        'status': 'passed' if all_passed else 'failed',
        'checks': checks_passed,
    }
    event_data.update(entity_ids)
    event_data.update(sanitize_dict(extra_fields))

    if all_passed:
        logger.info(f'Checkpoint passed: {checkpoint_name}', extra=event_data)
    else:
        logger.error(f'Checkpoint FAILED: {checkpoint_name}', extra=event_data)


def log_batch_created(batch, item_count, commission_percentage):
    """Log payment batch creation."""
    log_domain_event(
        'payment_batch_created',
        entity_type='PaymentBatch',
        entity_id=batch.id,
        entity_ids={
            'batch_id': batch.id,
            'psychologist_id': batch.psychologist_id,
            'created_by': batch.created_by,
        },
        result='success',
        item_count=item_count,
        commission_percentage=str(commission_percentage),
        total_gross_value=str(batch.total_gross_value),
        total_net_value=str(batch.total_net_value),
    )


def log_batch_transition(batch, from_status, to_status, result='success', **extra):
    """Log payment batch status transition."""
    log_domain_event(
        'payment_batch_transition',
        entity_type='PaymentBatch',
        entity_id=batch.id,
        entity_ids={'batch_id': batch.id, 'psychologist_id': batch.psychologist_id},
        result=result,
        from_status=from_status,
        to_status=to_status,
        **extra
    )


def log_transition_ignored(batch_id, to_status):
    """Log a transition request for a batch id the ledger does not know."""
    log_domain_event(
        'payment_batch_transition_ignored',
        entity_type='PaymentBatch',
        entity_id=batch_id,
        entity_ids={'batch_id': batch_id},
        result='ignored',
        to_status=to_status,
    )


def log_transition_blocked(batch, to_status, reason):
    """Log a transition rejected by the state machine (strict mode)."""
    log_domain_event(
        'payment_batch_transition_blocked',
        entity_type='PaymentBatch',
        entity_id=batch.id,
        entity_ids={'batch_id': batch.id, 'psychologist_id': batch.psychologist_id},
        result='blocked',
        from_status=batch.status,
        to_status=to_status,
        blocked_reason=reason,
    )


def log_notification_failed(title, sink_name, error):
    """Log a notification sink failure; the triggering mutation is kept."""
    log_domain_event(
        'notification_failed',
        entity_type='Notification',
        result='warning',
        title=title,
        sink=sink_name,
        error=str(error),
    )
