"""
Integrity Service
Heuristic cheat detection over the timing and browser signals of an attempt.

Every rule is evaluated; reasons accumulate instead of short-circuiting. Some
rules only note the behaviour (reason without flag) below a second, higher
threshold. Each fired rule is also reported as structured metadata so callers
never have to parse the reason string.
"""
from dataclasses import dataclass, field
import logging
import statistics
from typing import List, Optional

from eventhub.services.scoring_service import coerce_time_spent, round_half_up

logger = logging.getLogger(__name__)

# Rule identifiers
TAB_SWITCHING = 'TAB_SWITCHING'
FAST_AVERAGE = 'FAST_AVERAGE'
FAST_ANSWERS = 'FAST_ANSWERS'
AFK = 'AFK'
EXTERNAL_DEVICE = 'EXTERNAL_DEVICE'
LONG_ANSWERS = 'LONG_ANSWERS'
INACTIVITY = 'INACTIVITY'
SCREENSHOT = 'SCREENSHOT'
EXTENSIONS = 'EXTENSIONS'

# Thresholds
MAX_TAB_SWITCHES = 3
MIN_AVERAGE_MS = 2000
FAST_ANSWER_MS = 1000
FAST_ANSWER_SHARE = 0.5
MAX_AFK_INCIDENTS = 2
DEVICE_WINDOW_MS = (5000, 20000)
DEVICE_SHARE = 0.7
DEVICE_MAX_CV = 0.3
DEVICE_MIN_MEAN_MS = 5000
LONG_ANSWER_MS = 30000
MAX_LONG_ANSWERS = 2
INACTIVITY_MS = 15000
INACTIVITY_REPORT_ABOVE = 1
INACTIVITY_FLAG_ABOVE = 3
SCREENSHOT_FLAG_ABOVE = 2


@dataclass
class IntegritySignals:
    """Browser-side signals collected during an attempt"""
    tab_switches: int = 0
    afk_incidents: int = 0
    screenshot_attempts: int = 0
    detected_extensions: List[str] = field(default_factory=list)
    inactivity_periods: List[dict] = field(default_factory=list)


@dataclass
class RuleResult:
    rule: str
    flagged: bool
    reason: str

    def to_dict(self):
        return {'rule': self.rule, 'flagged': self.flagged, 'reason': self.reason}


@dataclass
class IntegrityReport:
    results: List[RuleResult] = field(default_factory=list)

    @property
    def is_flagged(self):
        return any(r.flagged for r in self.results)

    @property
    def reasons(self):
        return [r.reason for r in self.results]

    @property
    def rules(self):
        return [r.rule for r in self.results]

    @property
    def flag_reason(self) -> Optional[str]:
        if not self.results:
            return None
        return '; '.join(self.reasons)

    def fired(self, rule):
        return rule in self.rules

    def to_list(self):
        return [r.to_dict() for r in self.results]


def _inactivity_duration(period):
    if isinstance(period, dict):
        return coerce_time_spent(period.get('duration'))
    return coerce_time_spent(getattr(period, 'duration', 0))


class IntegrityService:
    """Service for integrity evaluation of quiz attempts"""

    @staticmethod
    def evaluate(times_ms, signals):
        """
        Run every heuristic over the answer timings and client signals

        Args:
            times_ms: time spent per submitted answer, in milliseconds
            signals: IntegritySignals

        Returns:
            IntegrityReport
        """
        times = [coerce_time_spent(t) for t in times_ms]
        report = IntegrityReport()

        def fire(rule, reason, flagged=True):
            report.results.append(RuleResult(rule, flagged, reason))

        # 1. Tab switching
        if signals.tab_switches > MAX_TAB_SWITCHES:
            fire(TAB_SWITCHING, f'Switched tabs {signals.tab_switches} times')

        if times:
            count = len(times)
            mean = statistics.fmean(times)

            # 2. Average answer speed
            if mean < MIN_AVERAGE_MS:
                fire(FAST_AVERAGE, f'Answered too fast (avg {round_half_up(mean)}ms per question)')

            # 3. Share of near-instant answers
            too_fast = sum(1 for t in times if t < FAST_ANSWER_MS)
            if too_fast > count * FAST_ANSWER_SHARE:
                fire(FAST_ANSWERS, f'{too_fast} answers submitted in less than 1 second')

        # 4. Away from keyboard
        if signals.afk_incidents > MAX_AFK_INCIDENTS:
            fire(
                AFK,
                f'{signals.afk_incidents} AFK incidents detected '
                '(extended periods without activity)'
            )

        if times:
            # 5. Consistent medium delays suggest looking answers up on a phone
            low, high = DEVICE_WINDOW_MS
            medium = sum(1 for t in times if low <= t <= high)
            if mean > DEVICE_MIN_MEAN_MS and medium > count * DEVICE_SHARE:
                cv = statistics.pstdev(times) / mean
                if cv < DEVICE_MAX_CV:
                    fire(
                        EXTERNAL_DEVICE,
                        'Suspicious timing pattern detected (consistent '
                        f'{round_half_up(mean / 1000)}s delays suggest external device usage)'
                    )

            # 6. Very long answers
            long_answers = sum(1 for t in times if t > LONG_ANSWER_MS)
            if long_answers > MAX_LONG_ANSWERS:
                fire(
                    LONG_ANSWERS,
                    f'{long_answers} questions took more than 30 seconds (possible research time)'
                )

        # 7. Inactivity: noted above one period, flagged above three
        long_idle = sum(
            1 for p in signals.inactivity_periods or [] if _inactivity_duration(p) > INACTIVITY_MS
        )
        if long_idle > INACTIVITY_REPORT_ABOVE:
            fire(
                INACTIVITY,
                f'{long_idle} extended inactivity periods detected '
                '(possible phone usage or distraction)',
                flagged=long_idle > INACTIVITY_FLAG_ABOVE
            )

        # 8. Screenshots: noted on any attempt, flagged above two
        if signals.screenshot_attempts > 0:
            fire(
                SCREENSHOT,
                f'{signals.screenshot_attempts} screenshot attempt(s) detected and blocked',
                flagged=signals.screenshot_attempts > SCREENSHOT_FLAG_ABOVE
            )

        # 9. Browser extensions
        if signals.detected_extensions:
            fire(
                EXTENSIONS,
                'Suspicious browser extensions detected: '
                + ', '.join(signals.detected_extensions)
            )

        if report.results:
            logger.info(
                "Integrity rules fired: %s (flagged=%s)",
                ', '.join(report.rules), report.is_flagged
            )
        return report
