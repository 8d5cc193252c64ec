"""Main bot file for GuildDesk."""

import logging
import sys

import discord
from discord.ext import commands

from .utils import Config, setup_logger
from .utils.log_helper import DiscordLogger
from .database import GuildDirectory, GuildEventLog
from .exporters import DiscordExporter
from .sessions import SessionRegistry
from .commands.guilds import setup as setup_guilds
from .commands.status import setup as setup_status
from .events.guild_events import setup as setup_guild_events


class GuildDeskBot(commands.Bot):
    """Main GuildDesk Bot class."""

    def __init__(
        self,
        config: Config,
        event_log: GuildEventLog,
        *args,
        **kwargs
    ):
        """
        Initialize the GuildDesk bot.

        Args:
            config: Configuration object
            event_log: GuildEventLog instance
        """
        self.config = config
        self.event_log = event_log
        self.logger = logging.getLogger("guilddesk.bot")
        self.discord_logger = DiscordLogger(bot=self, config=config)
        self.registry = SessionRegistry()
        self.directory = GuildDirectory(self, event_log=event_log)
        self.exporter = DiscordExporter()

        intents = discord.Intents.default()
        intents.members = True  # Required for owner lookups

        super().__init__(
            command_prefix=commands.when_mentioned,  # Slash commands only
            intents=intents,
            *args,
            **kwargs
        )

    async def setup_hook(self):
        """Setup hook called when bot is starting."""
        self.logger.info("Setting up bot...")

        await self.event_log.initialize()
        self.logger.info("Guild event log initialized")

        await setup_guilds(self, self.config, self.registry, self.directory, self.event_log)
        await setup_status(self, self.config)
        self.logger.info("Commands loaded")

        await setup_guild_events(self, self.config, self.event_log, self.discord_logger)
        self.logger.info("Event handlers loaded")

        self.tree.on_error = self.on_app_command_error

        try:
            synced = await self.tree.sync()
            self.logger.info(f"Synced {len(synced)} global commands")
        except Exception as e:
            self.logger.error(f"Failed to sync commands: {e}")

    async def on_ready(self):
        """Called when bot is ready. Can run again after reconnects."""
        self.logger.info(f"Bot is ready! Logged in as {self.user.name} ({self.user.id})")
        self.logger.info(f"Connected to {len(self.guilds)} guild(s)")

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: discord.app_commands.AppCommandError
    ):
        """Handle application command errors."""
        self.logger.error(f"App command error: {error}", exc_info=error)

        embed = self.exporter.create_error(
            "Command Error",
            "An error occurred while executing this command."
        )
        try:
            if not interaction.response.is_done():
                await interaction.response.send_message(embed=embed, ephemeral=True)
            else:
                await interaction.followup.send(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.warning(f"Could not send error notice: {e}")

    async def close(self):
        """Clean shutdown of the bot"""
        self.logger.info("Shutting down GuildDesk...")

        # Disable every open guild view before the connection goes away
        try:
            await self.registry.expire_all()
        except Exception as e:
            self.logger.error(f"Error closing sessions: {e}")

        await super().close()


def main():
    """Main entry point for the bot."""
    # Load configuration
    try:
        config = Config()
        token = config.discord_token
    except FileNotFoundError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    # Setup logging
    logger = setup_logger(
        name="guilddesk",
        level=config.log_level,
        log_file=config.log_file,
        log_format=config.log_format
    )

    logger.info("=" * 50)
    logger.info("GuildDesk Bot Starting...")
    logger.info("=" * 50)

    event_log = GuildEventLog(db_path=config.database_path)

    bot = GuildDeskBot(config, event_log)

    try:
        bot.run(token, log_handler=None)
    except discord.LoginFailure:
        logger.error("❌ Failed to login. Please check your bot token.")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
