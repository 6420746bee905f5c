"""Adapters from stored event records to expander inputs."""

from .event_records import event_from_record, load_recurring_event, rule_from_record, rule_to_record

__all__ = ["event_from_record", "load_recurring_event", "rule_from_record", "rule_to_record"]
