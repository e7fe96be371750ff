"""
SLA Monitor

Compares each node's latest telemetry and health against its targets.
Violations are edge-triggered: one event when a node goes from compliant
to non-compliant, nothing while it stays non-compliant.
"""

from __future__ import annotations
import logging

from twinsim.config.settings import SLATargets
from .event_log import EventLog
from .models import EventType, EventSeverity, HealthRecord, TelemetrySample


class SLAMonitor:

    def __init__(self, event_log: EventLog):
        self.event_log = event_log
        self.logger = logging.getLogger(__name__)

    def check(
        self,
        node_id: str,
        targets: SLATargets,
        latest: TelemetrySample,
        record: HealthRecord,
    ) -> bool:
        """
        Update the record's SLA snapshot and return the compliance flag.

        Compliance is the AND of availability (health) >= target,
        p99 latency <= target and error rate <= target.
        """
        sla = record.sla
        sla.targets = targets
        sla.availability_actual = record.health
        sla.latency_actual = latest.latency.p99
        sla.error_rate_actual = latest.error_rate

        compliant = (
            record.health >= targets.availability
            and latest.latency.p99 <= targets.latency
            and latest.error_rate <= targets.error_rate
        )

        if sla.compliant and not compliant:
            self.event_log.append(
                EventType.SLA_VIOLATED,
                node_id,
                f"SLA violation detected for {node_id}",
                EventSeverity.ERROR,
            )
            self.logger.warning(
                f"SLA violated for '{node_id}': availability={record.health} "
                f"p99={latest.latency.p99}ms errors={latest.error_rate}%"
            )
        elif not sla.compliant and compliant:
            self.logger.debug(f"SLA restored for '{node_id}'")

        sla.compliant = compliant
        return compliant
