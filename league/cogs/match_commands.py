"""
Match Commands Cog

Discord commands for the weekly match workflow: seeing your current match,
reporting its result, browsing matchups and your completed matches.

A result only becomes final when both players report the same winner;
the ConfirmationEngine owned by the bot decides every transition.
"""

import discord
from discord.ext import commands
from discord import app_commands
from typing import Optional

from league.config import Config
from league.data_models.player import PlayerProfile
from league.services.rate_limiter import rate_limit
from league.utils.checks import get_linked_player
from league.utils.embeds import (
    build_current_match_embed, build_report_outcome_embed, build_history_embed, build_matchups_embed
)
from league.utils.error_embeds import ErrorEmbeds
from league.utils.exceptions import LeagueError
from league.utils.logger import setup_logger


class ReportResultView(discord.ui.View):
    """
    "I won" / "I lost" buttons attached to a player's current match.

    Only the player the view was created for may press the buttons; the
    opponent reports from their own ``/my-match``.
    """

    def __init__(self, engine, match_id: int, player: PlayerProfile, timeout: float = 900.0):
        super().__init__(timeout=timeout)
        self.engine = engine
        self.match_id = match_id
        self.player = player
        self.logger = setup_logger(f"{__name__}.ReportResultView")

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.player.discord_id:
            await interaction.response.send_message("❌ These buttons belong to another player.", ephemeral=True)
            return False
        return True

    @discord.ui.button(label="🏆 I won", style=discord.ButtonStyle.green, custom_id="report_result:won")
    async def won_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._handle_report(interaction, claims_self_won=True)

    @discord.ui.button(label="I lost", style=discord.ButtonStyle.red, custom_id="report_result:lost")
    async def lost_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._handle_report(interaction, claims_self_won=False)

    async def _handle_report(self, interaction: discord.Interaction, claims_self_won: bool):
        await interaction.response.defer(ephemeral=True)
        try:
            outcome = await self.engine.report_result(self.match_id, self.player.player_id, claims_self_won)
        except LeagueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_error(e), ephemeral=True)
            return

        if outcome.match.is_completed:
            # Nothing left to report on this match
            for item in self.children:
                item.disabled = True
            await interaction.edit_original_response(view=self)
            self.stop()

        await interaction.followup.send(
            embed=build_report_outcome_embed(outcome, claims_self_won), ephemeral=True
        )


class MatchCommandsCog(commands.Cog):
    """Commands for reporting and browsing league matches"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = setup_logger(__name__)
        self.engine = bot.confirmation_engine
        self.match_ops = bot.match_ops
        self.history_service = bot.match_history_service

    async def _require_linked_player(self, interaction: discord.Interaction) -> Optional[PlayerProfile]:
        """Resolve the acting player, sending an error when the account is not linked"""
        player = await get_linked_player(self.bot, interaction.user)
        if player is None:
            await interaction.followup.send(embed=ErrorEmbeds.account_not_linked(), ephemeral=True)
        return player

    @app_commands.command(name="my-match", description="Show your current match and report its result")
    @rate_limit("my-match", limit=5, window=60)
    async def my_match(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        player = await self._require_linked_player(interaction)
        if player is None:
            return

        current = await self.match_ops.get_current_match(player.player_id)
        if current is None:
            await interaction.followup.send(embed=ErrorEmbeds.no_open_match(), ephemeral=True)
            return

        view = ReportResultView(self.engine, current.match.match_id, player)
        await interaction.followup.send(
            embed=build_current_match_embed(current, player), view=view, ephemeral=True
        )

    @app_commands.command(name="report-result", description="Report whether you won or lost a match")
    @app_commands.describe(
        match_id="The match number shown in /my-match",
        won="True if you won the match, False if you lost"
    )
    @rate_limit("report-result", limit=5, window=60)
    async def report_result(self, interaction: discord.Interaction, match_id: int, won: bool):
        """Submit your side of a match result."""
        await interaction.response.defer(ephemeral=True)

        player = await self._require_linked_player(interaction)
        if player is None:
            return

        try:
            outcome = await self.engine.report_result(match_id, player.player_id, won)
        except LeagueError as e:
            self.logger.info(f"Report rejected for Match {match_id} by Player {player.player_id}: {e}")
            await interaction.followup.send(embed=ErrorEmbeds.from_error(e), ephemeral=True)
            return

        await interaction.followup.send(embed=build_report_outcome_embed(outcome, won), ephemeral=True)

    @app_commands.command(name="matchups", description="Show this week's scheduled matchups")
    @app_commands.describe(week="Week label to filter by (defaults to all scheduled matches)")
    @rate_limit("matchups", limit=3, window=30)
    async def matchups(self, interaction: discord.Interaction, week: Optional[str] = None):
        await interaction.response.defer()
        matchups = await self.match_ops.list_matchups(week=week)
        await interaction.followup.send(embed=build_matchups_embed(matchups, week))

    @app_commands.command(name="match-history", description="View completed matches for you or another player")
    @app_commands.describe(member="The player whose history you want to view (defaults to you)")
    @rate_limit("match-history", limit=3, window=30)
    async def match_history(self, interaction: discord.Interaction, member: Optional[discord.Member] = None):
        await interaction.response.defer()

        target = member or interaction.user
        player = await get_linked_player(self.bot, target)
        if player is None:
            await interaction.followup.send(embed=ErrorEmbeds.account_not_linked(member))
            return

        try:
            history = await self.history_service.get_player_history(player.player_id)
        except LeagueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_error(e))
            return

        if not history.entries:
            await interaction.followup.send(embed=ErrorEmbeds.no_match_history())
            return

        await interaction.followup.send(
            embed=build_history_embed(history, player, Config.MATCH_HISTORY_LIMIT)
        )


async def setup(bot):
    await bot.add_cog(MatchCommandsCog(bot))
