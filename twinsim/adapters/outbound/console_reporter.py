"""
Console Reporter Adapter

Formatted terminal output with colors for health tables, event logs,
blast-radius results and run summaries.
"""

from typing import Any, Dict, Iterable, List, Optional

from twinsim.simulation.models import (
    BlastRadiusResult,
    EventSeverity,
    HealthRecord,
    NodeStatus,
    SimulationEvent,
)


class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


STATUS_COLORS = {
    NodeStatus.HEALTHY: Colors.GREEN,
    NodeStatus.DEGRADED: Colors.YELLOW,
    NodeStatus.DOWN: Colors.RED,
}

SEVERITY_COLORS = {
    EventSeverity.INFO: Colors.GRAY,
    EventSeverity.WARNING: Colors.YELLOW,
    EventSeverity.ERROR: Colors.RED,
    EventSeverity.CRITICAL: Colors.RED,
}


class ConsoleReporter:
    """
    Terminal presentation of simulation state.

    Colors can be turned off for piping or logs.
    """
    Colors = Colors

    def __init__(self, use_color: bool = True):
        self.use_color = use_color

    def colored(self, text: str, color: str, bold: bool = False) -> str:
        """Apply color if enabled."""
        if not self.use_color:
            return text
        style = Colors.BOLD if bold else ""
        return f"{style}{color}{text}{Colors.RESET}"

    def print_header(self, title: str, char: str = "=", width: int = 78) -> None:
        print(f"\n{self.colored(char * width, Colors.CYAN)}")
        print(self.colored(f" {title} ".center(width), Colors.CYAN, bold=True))
        print(self.colored(char * width, Colors.CYAN))

    def print_subheader(self, title: str) -> None:
        print(f"\n{self.colored(f' {title} ', Colors.WHITE, bold=True)}")

    def error(self, message: str) -> str:
        return self.colored(f"Error: {message}", Colors.RED)

    # =========================================================================
    # Simulation views
    # =========================================================================

    def display_health(self, records: Iterable[HealthRecord]) -> None:
        records = sorted(records, key=lambda r: (r.health, r.node_id))
        self.print_subheader(f"Node Health ({len(records)} nodes)")
        print(f"\n  {'Node':<25} {'Health':<8} {'Status':<10} {'Incidents':<10} {'SLA':<6}")
        print(f"  {'-' * 62}")
        for r in records:
            color = STATUS_COLORS[r.status]
            sla = "ok" if r.sla.compliant else "FAIL"
            sla_color = Colors.GREEN if r.sla.compliant else Colors.RED
            print(
                f"  {r.node_id:<25} {r.health:<8} "
                f"{self.colored(f'{r.status.value:<10}', color)} "
                f"{len(r.open_incidents):<10} {self.colored(sla, sla_color)}"
            )

    def display_events(self, events: List[SimulationEvent], title: str = "Recent Events") -> None:
        self.print_subheader(f"{title} ({len(events)})")
        if not events:
            print("\n  (none)")
            return
        print()
        for e in events:
            color = SEVERITY_COLORS.get(e.severity, Colors.RESET)
            print(
                f"  t={e.timestamp:<7g} {self.colored(f'{e.type.value:<20}', color)} "
                f"{e.message}"
            )

    def display_blast_radius(self, result: BlastRadiusResult) -> None:
        self.print_header(f"Blast Radius: {result.epicenter}")
        if not result.affected_nodes:
            print(f"\n  {self.colored('Unknown node or no affected services.', Colors.GRAY)}")
            return
        radius_color = Colors.RED if result.radius >= 3 else (Colors.YELLOW if result.radius else Colors.GREEN)
        print(f"\n  Radius:              {self.colored(str(result.radius), radius_color)} hop(s)")
        print(f"  Services Impacted:   {result.services_impacted}")
        print(f"  Connections:         {len(result.affected_connections)}")
        print(f"  Est. Downtime:       {result.estimated_downtime} min")
        print(f"  Critical Path:       {' -> '.join(result.critical_path)}")

        self.print_subheader("Affected Nodes")
        print()
        for node_id in result.affected_nodes:
            marker = "*" if node_id == result.epicenter else "-"
            print(f"  {marker} {node_id}")

    def display_summary(self, summary: Dict[str, Any], title: Optional[str] = None) -> None:
        self.print_header(title or "Simulation Summary")
        by_status = summary.get("by_status", {})
        print(f"\n  State:               {summary.get('state')}")
        print(f"  Ticks / Time:        {summary.get('tick')} / {summary.get('time')}s")
        print(f"  Nodes:               {summary.get('nodes')}")
        print(f"  Healthy:             {self.colored(str(by_status.get('healthy', 0)), Colors.GREEN)}")
        print(f"  Degraded:            {self.colored(str(by_status.get('degraded', 0)), Colors.YELLOW)}")
        print(f"  Down:                {self.colored(str(by_status.get('down', 0)), Colors.RED)}")
        print(f"  Open Incidents:      {summary.get('open_incidents', 0)}")
        violators = summary.get("sla_violations") or []
        violation_text = ", ".join(violators) if violators else "none"
        print(f"  SLA Violations:      {self.colored(violation_text, Colors.RED if violators else Colors.GRAY)}")
