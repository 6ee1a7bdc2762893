"""
Leaderboard view components.

Provides the paginated Discord UI for league standings.
"""

import discord
from discord.ui import View, Button
from typing import Optional
import logging

from league.data_models.leaderboard import LeaderboardPage
from league.utils.embeds import build_leaderboard_embed

logger = logging.getLogger(__name__)


class LeaderboardView(View):
    """Paginated leaderboard view."""

    def __init__(
        self,
        leaderboard_service,
        current_page: int,
        total_pages: int,
        page_size: int = 10,
        viewer_id: Optional[int] = None,
        *,
        timeout: int = 900
    ):
        super().__init__(timeout=timeout)
        self.leaderboard_service = leaderboard_service
        self.current_page = current_page
        self.total_pages = total_pages
        self.page_size = page_size
        self.viewer_id = viewer_id

        self._update_buttons()

    def _update_buttons(self):
        """Update button states based on current page."""
        self.clear_items()

        prev_button = Button(
            label="Previous",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page <= 1,
            custom_id="leaderboard:prev"
        )
        prev_button.callback = self.previous_page
        self.add_item(prev_button)

        page_indicator = Button(
            label=f"Page {self.current_page}/{self.total_pages}",
            style=discord.ButtonStyle.secondary,
            disabled=True
        )
        self.add_item(page_indicator)

        next_button = Button(
            label="Next",
            style=discord.ButtonStyle.primary,
            disabled=self.current_page >= self.total_pages,
            custom_id="leaderboard:next"
        )
        next_button.callback = self.next_page
        self.add_item(next_button)

    async def previous_page(self, interaction: discord.Interaction):
        """Navigate to previous page."""
        await interaction.response.defer()
        if self.current_page > 1:
            self.current_page -= 1
            await self._update_leaderboard(interaction)

    async def next_page(self, interaction: discord.Interaction):
        """Navigate to next page."""
        await interaction.response.defer()
        if self.current_page < self.total_pages:
            self.current_page += 1
            await self._update_leaderboard(interaction)

    async def _update_leaderboard(self, interaction: discord.Interaction):
        """Fetch and display updated leaderboard page."""
        try:
            page_data: LeaderboardPage = await self.leaderboard_service.get_page(
                page=self.current_page,
                page_size=self.page_size
            )

            # Standings may have changed since the message was sent
            self.total_pages = page_data.total_pages
            self.current_page = page_data.current_page

            embed = build_leaderboard_embed(page_data, viewer_id=self.viewer_id)
            self._update_buttons()

            await interaction.followup.edit_message(
                message_id=interaction.message.id,
                embed=embed,
                view=self
            )
        except Exception as e:
            logger.error(f"Error updating leaderboard page {self.current_page}: {e}", exc_info=True)
            await interaction.followup.send("❌ Error updating leaderboard. Please try again.", ephemeral=True)
