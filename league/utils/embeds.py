"""
Shared embed utilities for the league bot.

Provides reusable embed building functions so cogs and views render
standings, matches and history the same way.
"""

import discord
from typing import Optional, List

from league.data_models.leaderboard import LeaderboardPage, AnnotatedPlayer
from league.data_models.match import (
    CurrentMatch, MatchHistory, Matchup, DashboardStats, ReportOutcome
)
from league.data_models.player import PlayerProfile
from league.database.models import MatchStatus

STATUS_LABELS = {
    MatchStatus.SCHEDULED: "🗓️ Scheduled",
    MatchStatus.AWAITING_CONFIRMATION: "⏳ Awaiting confirmation",
    MatchStatus.COMPLETED: "✅ Completed",
    MatchStatus.DISPUTED: "⚠️ Disputed",
    MatchStatus.CANCELLED: "🚫 Cancelled",
}


def format_movement(entry: AnnotatedPlayer) -> str:
    """Arrow plus the number of places moved since last week"""
    if entry.position_delta > 0:
        return f"▲{entry.position_delta}"
    if entry.position_delta < 0:
        return f"▼{-entry.position_delta}"
    return "-"


def format_date(value) -> str:
    if value is None:
        return "TBD"
    return value.strftime("%b %d, %Y")


def build_leaderboard_embed(page_data: LeaderboardPage, viewer_id: Optional[int] = None) -> discord.Embed:
    """
    Build the leaderboard table for one page.

    The viewer's own row is marked with an arrow so players can find
    themselves on long pages.
    """
    embed = discord.Embed(
        title="🏆 League Leaderboard",
        description="Standings as set by the league administrators.",
        color=discord.Color.gold()
    )

    if not page_data.entries:
        embed.description += "\n\nNo players have been added yet."
        return embed

    # Compact table formatting for Discord constraints
    lines = ["```"]
    lines.append(f"  {'#':<4} {'Player':<18} {'W-L':<7} {'Move':<5}")
    lines.append("-" * 40)
    for entry in page_data.entries:
        marker = "→ " if viewer_id is not None and entry.player.player_id == viewer_id else "  "
        lines.append(
            f"{marker}{entry.player.rank:<4} {entry.player.name[:16]:<18} "
            f"{entry.player.record:<7} {format_movement(entry):<5}"
        )
    lines.append("```")
    embed.description += "\n" + "\n".join(lines)

    if page_data.current_page == 1:
        leader = page_data.entries[0]
        embed.add_field(name="👑 First Place", value=f"**{leader.player.name}** ({leader.player.record})", inline=False)

    embed.set_footer(
        text=f"Page {page_data.current_page}/{page_data.total_pages} | Total Players: {page_data.total_players}"
    )
    return embed


def build_current_match_embed(current: CurrentMatch, viewer: PlayerProfile) -> discord.Embed:
    """Embed for the viewer's open match and what they have reported"""
    match = current.match
    opponent_name = current.opponent.name if current.opponent else "Unknown Player"

    embed = discord.Embed(
        title=f"⚔️ Match #{match.match_id}: {viewer.name} vs {opponent_name}",
        color=discord.Color.orange() if match.status == MatchStatus.DISPUTED else discord.Color.blue()
    )
    embed.add_field(name="Status", value=STATUS_LABELS[match.status], inline=True)
    embed.add_field(name="Scheduled", value=format_date(match.date_scheduled), inline=True)
    if match.week:
        embed.add_field(name="Week", value=match.week, inline=True)

    if current.has_reported:
        claim = "you won" if current.reported_winner_id == viewer.player_id else f"{opponent_name} won"
        embed.add_field(name="Your Report", value=f"You reported that {claim}.", inline=False)
    else:
        embed.add_field(name="Your Report", value="You have not reported a result yet.", inline=False)

    if match.status == MatchStatus.DISPUTED:
        embed.set_footer(text="The reports disagree. Report again, or ask an admin to re-open the match.")
    return embed


def build_report_outcome_embed(outcome: ReportOutcome, reporter_won: bool) -> discord.Embed:
    """Embed confirming a submitted report and the resulting match status"""
    status = outcome.status
    if status == MatchStatus.COMPLETED:
        description = "Both players agree. The result is final and the standings have been updated."
        color = discord.Color.green()
    elif status == MatchStatus.DISPUTED:
        description = "Your report does not match your opponent's. The match is now disputed."
        color = discord.Color.orange()
    else:
        description = "Waiting for your opponent to confirm the result."
        color = discord.Color.blue()

    embed = discord.Embed(
        title=f"📝 Result reported for Match #{outcome.match.match_id}",
        description=description,
        color=color
    )
    embed.add_field(name="You reported", value="I won" if reporter_won else "I lost", inline=True)
    embed.add_field(name="Status", value=STATUS_LABELS[status], inline=True)
    return embed


def build_history_embed(history: MatchHistory, player: PlayerProfile, limit: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"📜 Match History: {player.name}",
        description=f"**Record:** {history.record}",
        color=discord.Color.blue()
    )
    for entry in history.entries[:limit]:
        result = "✅ Win" if entry.won else "❌ Loss"
        week = f" • {entry.week}" if entry.week else ""
        embed.add_field(
            name=f"{result} vs {entry.opponent_name}",
            value=f"Match #{entry.match_id} • {format_date(entry.completed_at or entry.date_scheduled)}{week}",
            inline=False
        )
    return embed


def build_matchups_embed(matchups: List[Matchup], week: Optional[str]) -> discord.Embed:
    title = f"🗓️ Matchups: {week}" if week else "🗓️ Matchups"
    embed = discord.Embed(title=title, color=discord.Color.blue())
    if not matchups:
        embed.description = "No matches are scheduled right now."
        return embed

    # Embeds allow at most 25 fields
    for matchup in matchups[:25]:
        embed.add_field(
            name=f"#{matchup.match_id}: {matchup.player1_name} vs {matchup.player2_name}",
            value=format_date(matchup.date_scheduled),
            inline=False
        )
    if len(matchups) > 25:
        embed.set_footer(text=f"Showing 25 of {len(matchups)} matchups")
    return embed


def build_profile_embed(profile: PlayerProfile, position_delta: int) -> discord.Embed:
    embed = discord.Embed(
        title=f"👤 {profile.name}",
        color=discord.Color.gold() if profile.rank == 1 else discord.Color.blue()
    )
    embed.add_field(name="Rank", value=f"#{profile.rank}", inline=True)
    embed.add_field(name="Last Week", value=f"#{profile.previous_rank}", inline=True)
    embed.add_field(name="Record", value=profile.record, inline=True)
    if position_delta:
        direction = "up" if position_delta > 0 else "down"
        embed.set_footer(text=f"Moved {direction} {abs(position_delta)} since last week")
    return embed


def build_dashboard_embed(stats: DashboardStats) -> discord.Embed:
    """Admin dashboard counters"""
    embed = discord.Embed(
        title="📊 League Dashboard",
        description=f"Current week: **{stats.current_week or 'not set'}**",
        color=discord.Color.blue()
    )
    embed.add_field(name="Players", value=str(stats.total_players), inline=True)
    embed.add_field(name="Completed Matches", value=str(stats.completed_matches), inline=True)
    embed.add_field(name="Scheduled Matchups", value=str(stats.scheduled_matchups), inline=True)
    embed.add_field(name="Awaiting Confirmation", value=str(stats.awaiting_confirmation), inline=True)
    embed.add_field(name="Disputed", value=str(stats.disputed_matches), inline=True)
    return embed
