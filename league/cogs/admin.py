import discord
from discord.ext import commands
from discord import app_commands
from datetime import datetime
from typing import Any, Dict, List, Optional

from league.config import Config
from league.utils.checks import is_league_admin
from league.utils.embeds import build_dashboard_embed, STATUS_LABELS
from league.utils.error_embeds import ErrorEmbeds
from league.utils.exceptions import LeagueError
from league.utils.logger import setup_logger

DATE_FORMAT = "%Y-%m-%d"


def parse_match_date(text: Optional[str]) -> Optional[datetime]:
    """Parse a YYYY-MM-DD option; blank means not given"""
    if text is None or not text.strip():
        return None
    return datetime.strptime(text.strip(), DATE_FORMAT)


def collect_player_edits(**options) -> Dict[str, Any]:
    """
    Turn the optional admin-edit-player options into update_player() fields.

    Options left empty are dropped; ``password`` maps to the stored credential.
    """
    edits = {key: value for key, value in options.items() if value is not None}
    if 'password' in edits:
        edits['credential'] = edits.pop('password')
    return edits


class AdminCog(commands.Cog):
    """League administration commands (owner or admin players only)"""

    def __init__(self, bot):
        self.bot = bot
        self.logger = setup_logger(__name__)
        self.player_ops = bot.player_ops
        self.match_ops = bot.match_ops
        self.admin_ops = bot.admin_ops

    def cog_check(self, ctx):
        """Prefix commands are owner only"""
        return ctx.author.id == Config.OWNER_DISCORD_ID

    async def _send_error(self, interaction: discord.Interaction, error: LeagueError):
        self.logger.info(f"Admin command '{interaction.command.name if interaction.command else 'Unknown'}' rejected: {error}")
        await interaction.followup.send(embed=ErrorEmbeds.from_error(error), ephemeral=True)

    async def player_autocomplete(self, interaction: discord.Interaction, current: str) -> List[app_commands.Choice[int]]:
        """Suggest players by name, submitting their id"""
        try:
            players = await self.player_ops.list_players()
        except Exception as e:
            self.logger.error(f"Error in player autocomplete: {e}")
            return []
        return [
            app_commands.Choice(name=f"#{p.rank} {p.name}", value=p.id)
            for p in players
            if current.lower() in p.name.lower()
        ][:25]  # Discord limit

    # ------------------------------------------------------------------
    # Prefix commands
    # ------------------------------------------------------------------

    @commands.command(name='shutdown')
    async def shutdown_bot(self, ctx):
        """Shutdown the bot (Owner only)"""
        await ctx.send("🔴 Shutting down League Bot...")
        await self.bot.close()

    @commands.command(name='dbstats')
    async def database_stats(self, ctx):
        """Show database row counts (Owner only)"""
        counts = await self.bot.db.get_table_counts()
        embed = discord.Embed(title="📊 Database Statistics", color=discord.Color.blue())
        embed.add_field(name="Players", value=counts['players'], inline=True)
        embed.add_field(name="Matches", value=counts['matches'], inline=True)
        embed.add_field(name="Open Matches", value=counts['open_matches'], inline=True)
        await ctx.send(embed=embed)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    @app_commands.command(name="admin-add-player", description="[Admin] Add a player at the bottom of the standings")
    @app_commands.describe(
        name="Display name",
        school_email="School email used to sign in",
        password="Initial password",
        member="Discord account to link right away",
        personal_email="Personal email",
        phone="Phone number",
        admin="Give the player admin rights"
    )
    @app_commands.check(is_league_admin)
    async def add_player(
        self,
        interaction: discord.Interaction,
        name: str,
        school_email: str,
        password: str,
        member: Optional[discord.Member] = None,
        personal_email: Optional[str] = None,
        phone: Optional[str] = None,
        admin: bool = False
    ):
        await interaction.response.defer(ephemeral=True)
        try:
            player = await self.player_ops.create_player(
                name=name,
                school_email=school_email,
                credential=password,
                personal_email=personal_email,
                phone=phone,
                is_admin=admin,
                discord_id=member.id if member else None
            )
        except LeagueError as e:
            await self._send_error(interaction, e)
            return

        await interaction.followup.send(
            f"✅ Added **{player.name}** (ID {player.id}) at rank #{player.rank}.", ephemeral=True
        )

    @app_commands.command(name="admin-delete-player", description="[Admin] Remove a player from the league")
    @app_commands.describe(player="Player to remove")
    @app_commands.autocomplete(player=player_autocomplete)
    @app_commands.check(is_league_admin)
    async def delete_player(self, interaction: discord.Interaction, player: int):
        await interaction.response.defer(ephemeral=True)
        try:
            await self.player_ops.delete_player(player)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        await interaction.followup.send(f"🗑️ Player {player} removed. Ranks below were moved up.", ephemeral=True)

    @app_commands.command(name="admin-set-rank", description="[Admin] Move a player to a new rank")
    @app_commands.describe(player="Player to move", rank="New rank (1 is first place)")
    @app_commands.autocomplete(player=player_autocomplete)
    @app_commands.check(is_league_admin)
    async def set_rank(self, interaction: discord.Interaction, player: int, rank: int):
        """Players between the old and new rank shift by one place."""
        await interaction.response.defer(ephemeral=True)
        try:
            ordered = await self.player_ops.set_rank(player, rank)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return

        lines = [f"#{p.rank} {p.name}" for p in ordered[:15]]
        await interaction.followup.send(
            "✅ Rank updated.\n```\n" + "\n".join(lines) + "\n```", ephemeral=True
        )

    @app_commands.command(name="admin-edit-player", description="[Admin] Edit a player's details or correct their record")
    @app_commands.describe(
        player="Player to edit",
        name="New display name",
        school_email="New school email",
        personal_email="New personal email",
        phone="New phone number",
        password="New password",
        wins="Corrected number of wins",
        losses="Corrected number of losses",
        previous_rank="Corrected rank from last week",
        admin="Grant or remove admin rights"
    )
    @app_commands.autocomplete(player=player_autocomplete)
    @app_commands.check(is_league_admin)
    async def edit_player(
        self,
        interaction: discord.Interaction,
        player: int,
        name: Optional[str] = None,
        school_email: Optional[str] = None,
        personal_email: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
        wins: Optional[app_commands.Range[int, 0]] = None,
        losses: Optional[app_commands.Range[int, 0]] = None,
        previous_rank: Optional[app_commands.Range[int, 1]] = None,
        admin: Optional[bool] = None
    ):
        """Only the options given are changed. Use /admin-set-rank to move a player."""
        await interaction.response.defer(ephemeral=True)

        edits = collect_player_edits(
            name=name, school_email=school_email, personal_email=personal_email, phone=phone,
            password=password, wins=wins, losses=losses, previous_rank=previous_rank, is_admin=admin
        )
        if not edits:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input("Give at least one field to change."), ephemeral=True)
            return

        try:
            updated = await self.player_ops.update_player(player, **edits)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return

        changed = ", ".join(sorted('password' if key == 'credential' else key for key in edits))
        await interaction.followup.send(
            f"✏️ Updated **{updated.name}** ({changed}). Record is now {updated.record}.", ephemeral=True
        )

    @app_commands.command(name="admin-new-week", description="[Admin] Start a new week and reset rank movement")
    @app_commands.describe(label="Label for the new week, e.g. 'Week 3'")
    @app_commands.check(is_league_admin)
    async def new_week(self, interaction: discord.Interaction, label: str):
        await interaction.response.defer(ephemeral=True)
        try:
            count = await self.admin_ops.start_new_week(label)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        await interaction.followup.send(
            f"📅 **{label.strip()}** started. Saved the ranks of {count} players as last week's ranks.", ephemeral=True
        )

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    @app_commands.command(name="admin-schedule", description="[Admin] Schedule a match between two players")
    @app_commands.describe(
        player1="First player",
        player2="Second player",
        date="Match date as YYYY-MM-DD (defaults to now)",
        week="Week label (defaults to the current week)"
    )
    @app_commands.autocomplete(player1=player_autocomplete, player2=player_autocomplete)
    @app_commands.check(is_league_admin)
    async def schedule(
        self,
        interaction: discord.Interaction,
        player1: int,
        player2: int,
        date: Optional[str] = None,
        week: Optional[str] = None
    ):
        await interaction.response.defer(ephemeral=True)

        try:
            date_scheduled = parse_match_date(date)
        except ValueError:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input("Date must look like 2024-09-30."), ephemeral=True)
            return

        try:
            if week is None:
                week = await self.admin_ops.get_current_week()
            match = await self.match_ops.schedule_match(player1, player2, date_scheduled=date_scheduled, week=week)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return

        await interaction.followup.send(f"🗓️ Scheduled Match #{match.id}.", ephemeral=True)

    @app_commands.command(name="admin-cancel-match", description="[Admin] Cancel a match that is not completed")
    @app_commands.describe(match_id="Match number", reason="Why the match is cancelled")
    @app_commands.check(is_league_admin)
    async def cancel_match(self, interaction: discord.Interaction, match_id: int, reason: Optional[str] = None):
        await interaction.response.defer(ephemeral=True)
        try:
            await self.match_ops.cancel_match(match_id, reason=reason)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        await interaction.followup.send(f"🚫 Match #{match_id} cancelled.", ephemeral=True)

    @app_commands.command(name="admin-reopen-match", description="[Admin] Clear both reports of a disputed match")
    @app_commands.describe(match_id="Disputed match number", notes="Notes about how the dispute was handled")
    @app_commands.check(is_league_admin)
    async def reopen_match(self, interaction: discord.Interaction, match_id: int, notes: Optional[str] = None):
        await interaction.response.defer(ephemeral=True)
        try:
            match = await self.match_ops.reopen_disputed_match(match_id, notes=notes)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        await interaction.followup.send(
            f"🔁 Match #{match_id} is {STATUS_LABELS[match.status]} again. Both players must report.", ephemeral=True
        )

    @app_commands.command(name="admin-edit-match", description="[Admin] Change the players, date or week of an unreported match")
    @app_commands.describe(
        match_id="Match number",
        player1="Replacement first player",
        player2="Replacement second player",
        date="New date as YYYY-MM-DD",
        week="New week label"
    )
    @app_commands.autocomplete(player1=player_autocomplete, player2=player_autocomplete)
    @app_commands.check(is_league_admin)
    async def edit_match(
        self,
        interaction: discord.Interaction,
        match_id: int,
        player1: Optional[int] = None,
        player2: Optional[int] = None,
        date: Optional[str] = None,
        week: Optional[str] = None
    ):
        await interaction.response.defer(ephemeral=True)

        try:
            date_scheduled = parse_match_date(date)
        except ValueError:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input("Date must look like 2024-09-30."), ephemeral=True)
            return

        try:
            match = await self.match_ops.update_schedule(
                match_id, player1_id=player1, player2_id=player2, date_scheduled=date_scheduled, week=week
            )
        except LeagueError as e:
            await self._send_error(interaction, e)
            return

        await interaction.followup.send(f"✏️ Match #{match.id} updated.", ephemeral=True)

    @app_commands.command(name="admin-delete-match", description="[Admin] Delete a scheduled or cancelled match")
    @app_commands.describe(match_id="Match number")
    @app_commands.check(is_league_admin)
    async def delete_match(self, interaction: discord.Interaction, match_id: int):
        """Only matches without reports or a result can be deleted."""
        await interaction.response.defer(ephemeral=True)
        try:
            await self.match_ops.delete_match(match_id)
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        await interaction.followup.send(f"🗑️ Match #{match_id} deleted.", ephemeral=True)

    # ------------------------------------------------------------------
    # League
    # ------------------------------------------------------------------

    @app_commands.command(name="admin-stats", description="[Admin] Show league dashboard counters")
    @app_commands.check(is_league_admin)
    async def stats(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        stats = await self.admin_ops.get_dashboard_stats()
        await interaction.followup.send(embed=build_dashboard_embed(stats), ephemeral=True)

    @app_commands.command(name="admin-reconcile", description="[Admin] Apply completed matches missing from the standings")
    @app_commands.check(is_league_admin)
    async def reconcile(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            applied = await self.admin_ops.reconcile_standings()
        except LeagueError as e:
            await self._send_error(interaction, e)
            return
        if applied:
            await interaction.followup.send(f"🔧 Applied matches: {', '.join(f'#{m}' for m in applied)}", ephemeral=True)
        else:
            await interaction.followup.send("✅ Standings already match every completed match.", ephemeral=True)


async def setup(bot):
    await bot.add_cog(AdminCog(bot))
