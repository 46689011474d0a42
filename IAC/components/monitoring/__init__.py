"""
Monitoring components.

Components:
- AlarmsComponent: CloudWatch alarms on restart count, memory and consumer lag
"""

from IAC.components.monitoring.alarms import AlarmsComponent, AlarmOutputs, alarm_specs

__all__ = [
    "AlarmsComponent",
    "AlarmOutputs",
    "alarm_specs",
]
