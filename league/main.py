import asyncio
import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from league.config import Config
from league.database.database import Database
from league.database.match_operations import MatchOperations
from league.operations.player_operations import PlayerOperations
from league.operations.admin_operations import AdminOperations
from league.services.confirmation import ConfirmationEngine
from league.services.leaderboard import LeaderboardService
from league.services.match_history_service import MatchHistoryService
from league.services.rate_limiter import SimpleRateLimiter
from league.services.standings import StandingsUpdater
from league.utils.logger import setup_logger

class LeagueBot(commands.Bot):
    def __init__(self, database: Optional[Database] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.members = True

        super().__init__(
            command_prefix=Config.COMMAND_PREFIX,
            intents=intents,
            help_command=None
        )

        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error

        self.db: Optional[Database] = database
        self.rate_limiter = SimpleRateLimiter()
        self.player_ops: Optional[PlayerOperations] = None
        self.match_ops: Optional[MatchOperations] = None
        self.admin_ops: Optional[AdminOperations] = None
        self.confirmation_engine: Optional[ConfirmationEngine] = None
        self.leaderboard_service: Optional[LeaderboardService] = None
        self.match_history_service: Optional[MatchHistoryService] = None
        self.logger = setup_logger(__name__)

    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up League Bot...")

        if self.db is None:
            self.db = Database()
        await self.db.initialize()

        self.init_services()

        # Standings must reflect every completed match before anyone reads them
        applied = await self.admin_ops.reconcile_standings()
        if applied:
            self.logger.warning(f"Applied {len(applied)} completed matches missing from the standings")

        await self.load_cogs()
        await self._sync_commands()

        self.logger.info("League Bot setup complete!")

    def init_services(self):
        """Build the shared operations and services on top of the database"""
        # One engine per process so the per-match locks are shared by every cog
        standings = StandingsUpdater()
        self.player_ops = PlayerOperations(self.db)
        self.match_ops = MatchOperations(self.db)
        self.admin_ops = AdminOperations(self.db, self.player_ops, self.match_ops, standings)
        self.confirmation_engine = ConfirmationEngine(self.db.session_factory, standings)
        self.leaderboard_service = LeaderboardService(self.db.session_factory)
        self.match_history_service = MatchHistoryService(self.db.session_factory)

    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'league.cogs.admin',
            'league.cogs.player',
            'league.cogs.leaderboard',
            'league.cogs.match_commands',
        ]

        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)

    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return

        try:
            guild_ids = Config.get_guild_ids()

            if guild_ids:
                # Guild-specific sync updates instantly
                self.logger.info(f"Attempting to sync commands to {len(guild_ids)} guild(s): {guild_ids}...")

                total_synced = 0
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Successfully synced {len(synced)} command(s) to guild {guild_id}")
                        total_synced += len(synced)
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)

                self.logger.info(f"Multi-guild sync complete: {total_synced} total command instances deployed")
            else:
                self.logger.info("Attempting to sync commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Successfully synced {len(synced)} command(s) globally")
        except Exception as e:
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)
            # Prefix commands keep working without a sync

    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')

        await self.change_presence(
            activity=discord.Game(name="League | /my-match")
        )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Global error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'
        if isinstance(error, app_commands.CheckFailure):
            self.logger.info(f"Permission denied for command '{command_name}' by user {interaction.user}")
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=True)

        if isinstance(error, app_commands.CommandOnCooldown):
            error_embed = discord.Embed(
                title=f"❌ Command is on cooldown. Try again in {error.retry_after:.2f} seconds.",
                color=discord.Color.red()
            )
        elif isinstance(error, app_commands.CheckFailure) and command_name.startswith('admin-'):
            error_embed = discord.Embed(
                title="❌ Administrative Privileges Required",
                description="This command is restricted to league administrators only.",
                color=discord.Color.red()
            )
            error_embed.set_footer(text="Contact the bot owner if you believe you should have access.")
        elif isinstance(error, app_commands.CheckFailure):
            error_embed = discord.Embed(
                title="❌ Permission Denied",
                description="You don't have the required permissions to use this command.",
                color=discord.Color.red()
            )
        else:
            error_embed = discord.Embed(
                title="❌ An unexpected error occurred while processing your command.",
                description="The administrators have been notified.",
                color=discord.Color.red()
            )

        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=error_embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=error_embed, ephemeral=True)
        except Exception as e:
            self.logger.error(f"Failed to send error response: {e}")

    async def on_command_error(self, ctx: commands.Context, error: Exception):
        """Global error handler for prefix commands"""
        if isinstance(error, commands.CommandNotFound):
            return

        if isinstance(error, commands.CheckFailure):
            self.logger.info(f"Permission denied for command '{ctx.command.name if ctx.command else 'Unknown'}' by user {ctx.author}")
            await ctx.send("❌ This command is restricted to the bot owner.")
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.send(f"❌ Missing required argument: `{error.param.name}`")
            return

        self.logger.error(f"Unexpected error in command {ctx.command}: {error}")
        self.logger.error(''.join(traceback.format_exception(type(error), error, error.__traceback__)))

        embed = discord.Embed(
            title="❌ An error occurred",
            description="An unexpected error occurred while processing your command.",
            color=discord.Color.red()
        )
        await ctx.send(embed=embed)

    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down League Bot...")

        if self.db:
            await self.db.close()

        await super().close()

async def main():
    """Main entry point"""
    Config.validate()

    bot = LeagueBot()

    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
