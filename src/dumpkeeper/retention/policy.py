"""
Retention policies.

A policy receives the artifacts of one sweep ordered newest first and
returns a keep/delete decision for each. Inside the daily window every
artifact is kept; the policies differ in how they pick survivors beyond
it.

RankBasedPolicy keeps one artifact out of every 7 (weekly tier) or 30
(monthly tier) positions of the recency ranking. Survivors therefore
drift when the cadence is irregular: a missed day or an extra dump
shifts every later index, and deleting artifacts re-ranks the rest, so
a second sweep can remove more. CalendarBucketPolicy keeps the newest
artifact per ISO week and per calendar month instead; it is stable
under repeated sweeps.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timedelta

from dumpkeeper.config import RetentionConfig, RetentionPolicyType
from dumpkeeper.core.models import BackupArtifact, RetentionDecision, RetentionReason

DAY = timedelta(days=1)
WEEK = timedelta(days=7)
MONTH = timedelta(days=30)

WEEKLY_STRIDE = 7
MONTHLY_STRIDE = 30


class RetentionPolicy(ABC):
    """Decides which artifacts survive a sweep."""

    policy_type: RetentionPolicyType

    @abstractmethod
    def decide(
        self,
        artifacts: Sequence[BackupArtifact],
        config: RetentionConfig,
        now: datetime,
    ) -> list[RetentionDecision]:
        """
        Decide keep/delete for every artifact.

        Args:
            artifacts: Artifacts sorted by modification time, newest first
            config: Retention windows
            now: Reference time for ages, read once per sweep

        Returns:
            One decision per artifact, in input order
        """


class RankBasedPolicy(RetentionPolicy):
    """
    First match wins, per artifact at rank `index`:

    1. age < daily window                         -> daily
    2. age < weekly window and index % 7 == 0     -> weekly
    3. age < monthly window and index % 30 == 0   -> monthly
    4. otherwise                                  -> expired
    """

    policy_type = RetentionPolicyType.RANK

    def decide(
        self,
        artifacts: Sequence[BackupArtifact],
        config: RetentionConfig,
        now: datetime,
    ) -> list[RetentionDecision]:
        daily_limit = config.daily_window_days * DAY
        weekly_limit = config.weekly_window_weeks * WEEK
        monthly_limit = config.monthly_window_months * MONTH

        decisions = []
        for index, artifact in enumerate(artifacts):
            age = now - artifact.created_at

            if age < daily_limit:
                reason = RetentionReason.DAILY
            elif age < weekly_limit and index % WEEKLY_STRIDE == 0:
                reason = RetentionReason.WEEKLY
            elif age < monthly_limit and index % MONTHLY_STRIDE == 0:
                reason = RetentionReason.MONTHLY
            else:
                reason = RetentionReason.EXPIRED

            decisions.append(RetentionDecision(artifact=artifact, index=index, reason=reason))
        return decisions


class CalendarBucketPolicy(RetentionPolicy):
    """
    Keeps the newest artifact of each ISO week inside the weekly window
    and of each calendar month inside the monthly window. Buckets are
    formed only from artifacts older than the daily window.
    """

    policy_type = RetentionPolicyType.CALENDAR

    def decide(
        self,
        artifacts: Sequence[BackupArtifact],
        config: RetentionConfig,
        now: datetime,
    ) -> list[RetentionDecision]:
        daily_limit = config.daily_window_days * DAY
        weekly_limit = config.weekly_window_weeks * WEEK
        monthly_limit = config.monthly_window_months * MONTH

        seen_weeks: set[tuple[int, int]] = set()
        seen_months: set[tuple[int, int]] = set()

        decisions = []
        for index, artifact in enumerate(artifacts):
            age = now - artifact.created_at

            if age < daily_limit:
                decisions.append(
                    RetentionDecision(artifact=artifact, index=index, reason=RetentionReason.DAILY)
                )
                continue

            iso = artifact.created_at.isocalendar()
            week_key = (iso[0], iso[1])
            month_key = (artifact.created_at.year, artifact.created_at.month)

            newest_in_week = week_key not in seen_weeks
            newest_in_month = month_key not in seen_months
            seen_weeks.add(week_key)
            seen_months.add(month_key)

            if newest_in_week and age < weekly_limit:
                reason = RetentionReason.WEEKLY
            elif newest_in_month and age < monthly_limit:
                reason = RetentionReason.MONTHLY
            else:
                reason = RetentionReason.EXPIRED

            decisions.append(RetentionDecision(artifact=artifact, index=index, reason=reason))
        return decisions


POLICY_REGISTRY: dict[RetentionPolicyType, type[RetentionPolicy]] = {
    RetentionPolicyType.RANK: RankBasedPolicy,
    RetentionPolicyType.CALENDAR: CalendarBucketPolicy,
}


def get_policy(policy_type: RetentionPolicyType) -> RetentionPolicy:
    """Instantiate the policy registered for a policy type."""
    return POLICY_REGISTRY[policy_type]()
