"""Structured response formatter for golden windows, sacrifice and nudge results."""

from typing import List, Optional, Sequence

from models.entities import (
    AggregateSacrifice,
    BestTimeSlot,
    NudgeResult,
    NudgeUrgency,
    Participant,
    ReclaimedStats,
    SacrificeCategory,
    SacrificeScoreResult,
    Trend,
)

CATEGORY_ICONS = {
    SacrificeCategory.AWAKE_FINE: "🟢",
    SacrificeCategory.INCONVENIENT: "🟡",
    SacrificeCategory.BAD: "🟠",
    SacrificeCategory.TERRIBLE: "🔴",
}

URGENCY_ICONS = {
    NudgeUrgency.MILD: "💡",
    NudgeUrgency.MODERATE: "🤔",
    NudgeUrgency.STRONG: "⚠️",
}

TREND_ICONS = {
    Trend.UP: "📈",
    Trend.DOWN: "📉",
    Trend.STABLE: "➡️",
}


class ResponseFormatter:
    """Formats scheduling results as markdown in a consistent, structured manner."""

    @staticmethod
    def format_section(title: str, content: List[str], icon: str = "📋") -> str:
        """Format a section with title and content."""
        lines = [f"**{icon} {title}**", ""]
        lines.extend(content)
        return "\n".join(lines)

    @staticmethod
    def format_hour(hour: int) -> str:
        """12-hour clock label, e.g. 0 -> "12 AM", 13 -> "1 PM"."""
        suffix = "AM" if hour < 12 else "PM"
        display = hour % 12 or 12
        return f"{display} {suffix}"

    @staticmethod
    def format_points(points: float) -> str:
        return f"{points:g} pt" if points == 1 else f"{points:g} pts"

    @staticmethod
    def get_sharpness_emoji(sharpness: float) -> str:
        if sharpness >= 0.85:
            return "🔥"
        if sharpness >= 0.7:
            return "⚡"
        if sharpness >= 0.5:
            return "🙂"
        if sharpness >= 0.3:
            return "😴"
        return "💤"

    @staticmethod
    def get_quality_description(quality_score: float) -> str:
        if quality_score >= 80:
            return "Excellent"
        if quality_score >= 65:
            return "Good"
        if quality_score >= 50:
            return "Fair"
        return "Poor"

    @staticmethod
    def format_slot_with_local_times(slot: BestTimeSlot) -> List[str]:
        """Lines showing one slot in UTC and in every participant's local time."""
        window = slot.window
        lines = [
            f"**{ResponseFormatter.format_hour(window.utc_hour)} UTC** "
            f"(golden {window.golden_score:g}, {ResponseFormatter.get_quality_description(window.quality_score)})",
        ]
        for pw in window.participants:
            icon = "✅" if pw.is_available else "❌"
            lines.append(
                f"   {icon} {pw.participant.display_name}: "
                f"{pw.local_start.strftime('%I:%M %p')} ({pw.participant.timezone}) "
                f"{ResponseFormatter.get_sharpness_emoji(pw.sharpness)}"
            )
        return lines

    @staticmethod
    def format_best_times(slots: Sequence[BestTimeSlot]) -> str:
        """Format ranked best times, highlighting the top match."""
        if not slots:
            return ResponseFormatter.format_error(
                "No Golden Windows Found",
                "No hour worked for everyone with the current filters.",
                suggestions=[
                    "Allow slots where some participants are unavailable",
                    "Lower the minimum quality score",
                    "Widen participants' working hours",
                ],
            )

        lines = [
            "**🌅 Golden Windows**",
            "",
            f"Found **{len(slots)}** time slot(s).",
            "",
        ]
        for slot in slots:
            label = f"⭐ **Option {slot.rank} (Best Match)**" if slot.rank == 1 else f"**Option {slot.rank}**"
            lines.append(label)
            lines.extend(ResponseFormatter.format_slot_with_local_times(slot))
            lines.append(f"   • {slot.summary}")
            lines.append("")
        return "\n".join(lines).rstrip()

    @staticmethod
    def format_sacrifice_score(score: SacrificeScoreResult, participant: Optional[Participant] = None) -> str:
        icon = CATEGORY_ICONS[score.category]
        who = participant.display_name if participant else (score.participant_id or "Participant")
        return (
            f"{icon} **{who}** at {ResponseFormatter.format_hour(score.local_hour)} local: "
            f"{ResponseFormatter.format_points(score.points)} ({score.category.value.replace('_', ' ')})"
        )

    @staticmethod
    def format_aggregate(aggregate: AggregateSacrifice, scores: Sequence[SacrificeScoreResult] = ()) -> str:
        """Format the meeting-level sacrifice summary."""
        content = [ResponseFormatter.format_sacrifice_score(s) for s in scores]
        if content:
            content.append("")
        content.extend([
            f"• **Total:** {ResponseFormatter.format_points(aggregate.total_points)}",
            f"• **Average:** {ResponseFormatter.format_points(aggregate.average_points)}",
            f"• **Fairness index:** {aggregate.fairness_index:g}",
        ])
        if aggregate.imbalance_warning:
            content.append(f"⚠️ **Imbalance:** {aggregate.imbalance_message}")
        return ResponseFormatter.format_section("Sacrifice Score", content, icon="⚖️")

    @staticmethod
    def format_nudge(result: NudgeResult) -> str:
        """Format an async nudge; returns an empty string when there is no nudge."""
        if not result.should_nudge:
            return ""

        lines = [
            f"**{URGENCY_ICONS[result.urgency]} Could this be async?**",
            "",
            result.message,
            "",
            f"**Nudge strength:** {result.nudge_strength}/100 ({result.urgency.value})",
        ]
        if result.reasons:
            lines.append("")
            lines.append("**Why:**")
            for reason in result.reasons:
                lines.append(f"• {reason.description}")

        lines.append("")
        lines.append("**Alternatives:**")
        for i, alternative in enumerate(result.suggested_alternatives[:3], 1):
            lines.append(f"{i}. **{alternative.name}** ({alternative.suitability_score}%): {alternative.best_for}")

        lines.append("")
        lines.append(f"*Going async could save about {result.estimated_hours_saved:g} person-hours.*")
        return "\n".join(lines)

    @staticmethod
    def format_hours_reclaimed(stats: ReclaimedStats) -> str:
        content = [
            f"• **Hours reclaimed:** {stats.total_hours_reclaimed:g}",
            f"• **Meetings converted:** {stats.meetings_converted}",
        ]
        if stats.has_baseline:
            sign = "+" if stats.trend_percent > 0 else ""
            content.append(f"• **Trend:** {TREND_ICONS[stats.trend]} {sign}{stats.trend_percent}% vs previous period")
        else:
            content.append("• **Trend:** no previous period to compare")
        return ResponseFormatter.format_section("Hours Reclaimed", content, icon="⏱️")

    @staticmethod
    def format_error(title: str, message: str, suggestions: Optional[List[str]] = None) -> str:
        """Format an error message."""
        lines = [
            f"**❌ {title}**",
            "",
            message,
        ]

        if suggestions:
            lines.append("")
            lines.append("**Suggestions:**")
            for suggestion in suggestions:
                lines.append(f"• {suggestion}")

        return "\n".join(lines)
