"""
Environment matching.

An EnvironmentCondition matches when every part that is set matches:
    - time_of_day: current time within [start, end]; start > end spans midnight
    - days_of_week: current day in the list (0=Sunday, 6=Saturday)
    - ip_allow_list: request IP inside at least one address/CIDR
    - ip_deny_list: request IP inside none of them

A part that is set requires the context to carry the attribute.
EnvironmentContext rejects unparseable client IPs; the string helpers below
still treat one as satisfying neither list.
"""

import ipaddress
from datetime import datetime
from typing import Iterable

from warden.matchers.base import EnvironmentMatcher
from warden.schema import EnvironmentCondition, EnvironmentContext, TimeRange


DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def create_environment_context(
    when: datetime | None = None,
    ip_address: str | None = None,
) -> EnvironmentContext:
    """
    Build an EnvironmentContext from a timestamp and the client IP.

    Args:
        when: Request time (defaults to local now)
        ip_address: Client IP, if known
    """
    if when is None:
        when = datetime.now()
    return EnvironmentContext(
        current_time=when.strftime("%H:%M"),
        current_day_of_week=when.isoweekday() % 7,
        ip_address=ip_address,
    )


def parse_time_to_minutes(value: str) -> int:
    """'09:30' -> 570"""
    hours, _, minutes = value.partition(":")
    return int(hours or 0) * 60 + int(minutes or 0)


def matches_time_of_day(time_range: TimeRange, current_time: str) -> bool:
    """
    Inclusive time window check.

    Examples:
        09:00-17:00 at 12:00 -> True
        22:00-06:00 at 03:00 -> True
        22:00-06:00 at 12:00 -> False
    """
    start = parse_time_to_minutes(time_range.start)
    end = parse_time_to_minutes(time_range.end)
    current = parse_time_to_minutes(current_time)

    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def matches_day_of_week(allowed_days: Iterable[int], current_day: int) -> bool:
    return current_day in allowed_days


def matches_ip_pattern(pattern: str, ip_address: str) -> bool:
    """
    Check an IP against an address or CIDR block (IPv4 or IPv6).

    Malformed input never matches.

    Examples:
        matches_ip_pattern("192.168.1.0/24", "192.168.1.100") -> True
        matches_ip_pattern("192.168.1.0/24", "192.168.2.100") -> False
        matches_ip_pattern("2001:db8::/32", "2001:db8::1") -> True
    """
    try:
        network = ipaddress.ip_network(pattern, strict=False)
        address = ipaddress.ip_address(ip_address)
    except ValueError:
        return False
    return address in network


def is_valid_ip(ip_address: str) -> bool:
    try:
        ipaddress.ip_address(ip_address)
    except ValueError:
        return False
    return True


def matches_ip_allow_list(allow_list: Iterable[str], ip_address: str) -> bool:
    return any(matches_ip_pattern(p, ip_address) for p in allow_list)


def matches_ip_deny_list(deny_list: Iterable[str], ip_address: str) -> bool:
    """True when the IP is valid and NOT inside any deny entry."""
    if not is_valid_ip(ip_address):
        return False
    return not any(matches_ip_pattern(p, ip_address) for p in deny_list)


def matches_environment_condition(
    condition: EnvironmentCondition,
    context: EnvironmentContext,
) -> bool:
    return get_environment_mismatch_reason(condition, context) is None


def matches_any_environment_condition(
    conditions: Iterable[EnvironmentCondition],
    context: EnvironmentContext,
) -> bool:
    return any(matches_environment_condition(c, context) for c in conditions)


def matches_all_environment_conditions(
    conditions: Iterable[EnvironmentCondition],
    context: EnvironmentContext,
) -> bool:
    return all(matches_environment_condition(c, context) for c in conditions)


def get_environment_mismatch_reason(
    condition: EnvironmentCondition,
    context: EnvironmentContext,
) -> str | None:
    """
    Describe why a context does not match a condition.

    Returns:
        Description of the first failing part, or None if the context matches
    """
    if condition.time_of_day is not None:
        if context.current_time is None:
            return "Condition requires time of day but context has no time"
        if not matches_time_of_day(condition.time_of_day, context.current_time):
            return (
                f"Current time '{context.current_time}' is not within allowed range "
                f"{condition.time_of_day.start} to {condition.time_of_day.end}"
            )

    if condition.days_of_week:
        if context.current_day_of_week is None:
            return "Condition requires day of week but context has no day"
        if not matches_day_of_week(condition.days_of_week, context.current_day_of_week):
            allowed = ", ".join(DAY_NAMES[d] for d in condition.days_of_week)
            current = DAY_NAMES[context.current_day_of_week]
            return f"Current day '{current}' is not in allowed days: [{allowed}]"

    if condition.ip_allow_list:
        if context.ip_address is None:
            return "Condition requires IP address but context has no IP"
        if not matches_ip_allow_list(condition.ip_allow_list, context.ip_address):
            allowed = ", ".join(condition.ip_allow_list)
            return f"IP address '{context.ip_address}' is not in allowed list: [{allowed}]"

    if condition.ip_deny_list:
        if context.ip_address is None:
            return "Condition requires IP address but context has no IP"
        if not is_valid_ip(context.ip_address):
            return f"IP address '{context.ip_address}' is not a valid IP address"
        if not matches_ip_deny_list(condition.ip_deny_list, context.ip_address):
            denied = ", ".join(condition.ip_deny_list)
            return f"IP address '{context.ip_address}' is in deny list: [{denied}]"

    return None


class EnvironmentConditionMatcher(EnvironmentMatcher):
    """Default environment matcher: time window, weekdays, IP allow/deny lists."""

    def matches(
        self,
        condition: EnvironmentCondition,
        environment: EnvironmentContext,
    ) -> bool:
        return matches_environment_condition(condition, environment)

    def mismatch_reason(
        self,
        condition: EnvironmentCondition,
        environment: EnvironmentContext,
    ) -> str | None:
        return get_environment_mismatch_reason(condition, environment)
