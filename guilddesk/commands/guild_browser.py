"""Interactive guild list, guild detail and leave confirmation views.

Views only route button clicks; all session state lives in the
SessionRegistry and changes through the pure transition functions in
``guilddesk.sessions``. Every transition of one session runs under that
session's lock.
"""

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Optional, Sequence

import discord

from ..analytics.guild_stats import aggregate
from ..database.guild_directory import (
    GuildDirectory,
    GuildDirectoryError,
    GuildNotFoundError,
    GuildRecord,
    InviteUnavailableError,
)
from ..exporters import DiscordExporter
from ..sessions import confirmation, detail, pagination
from ..sessions.confirmation import ConfirmationAction, ConfirmationEffect, ConfirmationSession
from ..sessions.detail import DetailAction, DetailEffect, DetailSession, parse_custom_id
from ..sessions.pagination import PaginationAction, PaginationEffect, PaginationSession
from ..sessions.registry import SessionEntry, SessionRegistry, session_key


logger = logging.getLogger("guilddesk.commands.guild_browser")

LIST_KIND = "list"
DETAIL_KIND = "detail"
CONFIRM_KIND = "confirm"

MessageEditor = Callable[..., Awaitable[Any]]


async def acknowledge(interaction: discord.Interaction) -> None:
    """Acknowledge an interaction without changing anything visible."""
    if interaction.response.is_done():
        return
    try:
        await interaction.response.defer()
    except discord.HTTPException as exc:
        logger.debug(f"Could not acknowledge interaction {interaction.id}: {exc}")


async def send_reply(interaction: discord.Interaction, **kwargs) -> discord.Message:
    """Send an ephemeral reply and return the message it created."""
    if interaction.response.is_done():
        return await interaction.followup.send(ephemeral=True, wait=True, **kwargs)
    await interaction.response.send_message(ephemeral=True, **kwargs)
    return await interaction.original_response()


class SessionView(discord.ui.View):
    """Base view for controls backed by a registry session.

    discord.py's own view timeout is disabled; the registry times sessions out.
    """

    def __init__(self, controller, kind: str):
        super().__init__(timeout=None)
        self.controller = controller
        self.kind = kind

    def entry_for(self, interaction: discord.Interaction) -> Optional[SessionEntry]:
        if interaction.message is None:
            return None
        return self.controller.registry.get(session_key(self.kind, interaction.message.id))

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        entry = self.entry_for(interaction)
        if entry is not None and self.controller.registry.gate.authorize(
            interaction.user.id, entry.state
        ):
            return True

        # Other users and stale sessions are ignored without a visible error
        logger.debug(
            f"Ignoring {self.kind} interaction from {interaction.user.id} "
            f"on message {getattr(interaction.message, 'id', None)}"
        )
        await acknowledge(interaction)
        return False

    async def on_error(
        self,
        interaction: discord.Interaction,
        error: Exception,
        item: discord.ui.Item
    ) -> None:
        logger.error(f"Unhandled error in {self.kind} view: {error}", exc_info=error)
        await acknowledge(interaction)


# ---------------------------------------------------------------------------
# Guild list
# ---------------------------------------------------------------------------


class GuildListView(SessionView):
    """Previous / Next / Statistics / Refresh controls of a guild list."""

    def __init__(self, controller: "PaginationController", session: PaginationSession):
        super().__init__(controller, LIST_KIND)
        self.sync(session)

    def sync(self, session: PaginationSession, *, disabled: bool = False) -> None:
        self.previous_button.disabled = disabled or not session.has_previous
        self.next_button.disabled = disabled or not session.has_next
        self.stats_button.disabled = disabled
        self.refresh_button.disabled = disabled

    @discord.ui.button(
        label="Previous",
        style=discord.ButtonStyle.primary,
        custom_id=PaginationAction.PREVIOUS.value
    )
    async def previous_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, PaginationAction.PREVIOUS)

    @discord.ui.button(
        label="Next",
        style=discord.ButtonStyle.primary,
        custom_id=PaginationAction.NEXT.value
    )
    async def next_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, PaginationAction.NEXT)

    @discord.ui.button(
        label="Statistics",
        style=discord.ButtonStyle.secondary,
        emoji="📊",
        custom_id=PaginationAction.STATS.value
    )
    async def stats_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, PaginationAction.STATS)

    @discord.ui.button(
        label="Refresh",
        style=discord.ButtonStyle.success,
        emoji="🔄",
        custom_id=PaginationAction.REFRESH.value
    )
    async def refresh_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, PaginationAction.REFRESH)


class PaginationController:
    """Runs guild list sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        directory: GuildDirectory,
        exporter: DiscordExporter,
        *,
        page_size: int = 10,
        timeout: float = pagination.LIST_TIMEOUT
    ):
        self.registry = registry
        self.directory = directory
        self.exporter = exporter
        self.page_size = page_size
        self.timeout = timeout

    async def start(self, interaction: discord.Interaction) -> Optional[SessionEntry]:
        """
        Render page 0 of the guild list and open its session.

        Returns:
            The session entry, or None when there are no guilds to list
        """
        collection = await self.directory.fetch_collection()
        session = PaginationSession.open(
            interaction.user.id,
            collection,
            page_size=self.page_size,
            timeout=self.timeout,
            now=self.registry.now()
        )

        if session.is_empty:
            await send_reply(interaction, embed=self.exporter.create_no_guilds())
            return None

        view = GuildListView(self, session)
        message = await send_reply(
            interaction,
            embed=self.exporter.create_list_embed(session),
            view=view
        )

        logger.info(
            f"Guild list opened by {interaction.user} "
            f"({len(session.collection)} guilds, {session.total_pages} pages)"
        )
        return self.registry.open(
            LIST_KIND,
            message.id,
            session,
            partial(self._teardown, view, message.edit),
            exclusive=True
        )

    async def handle(
        self,
        view: GuildListView,
        interaction: discord.Interaction,
        action: PaginationAction
    ) -> None:
        """Apply one authorized button press to its list session."""
        entry = view.entry_for(interaction)
        if entry is None:
            await acknowledge(interaction)
            return

        async with entry.lock:
            if entry.closed:
                await acknowledge(interaction)
                return

            try:
                collection = None
                if action is PaginationAction.REFRESH:
                    collection = await self.directory.fetch_collection()

                state, effects = pagination.transition(
                    entry.state,
                    action,
                    collection=collection,
                    now=self.registry.now()
                )
                if not effects:
                    # The session timed out while this action was in flight
                    await acknowledge(interaction)
                    return

                for effect in effects:
                    if effect is PaginationEffect.RENDER:
                        try:
                            await self._render(view, interaction, state)
                        except discord.HTTPException as exc:
                            await self._abandon(view, entry, exc)
                            await acknowledge(interaction)
                            return
                    elif effect is PaginationEffect.SHOW_STATS:
                        await self.show_stats(interaction, state.collection)

                # Committed only once every effect went through
                if not self.registry.commit(entry, state):
                    await acknowledge(interaction)
                    return

                if state.is_empty:
                    view.stop()
                    await self.registry.close(entry.key)

            except Exception as exc:
                logger.error(f"Guild list action {action.value} failed: {exc}", exc_info=True)
                view.sync(entry.state)
                await acknowledge(interaction)

    async def _abandon(
        self,
        view: GuildListView,
        entry: SessionEntry,
        error: discord.HTTPException
    ) -> None:
        """Drop a session whose message can no longer be edited."""
        logger.warning(f"Could not render {entry.key}, closing session: {error}")
        view.sync(entry.state, disabled=True)
        view.stop()
        await self.registry.close(entry.key)

    async def _render(
        self,
        view: GuildListView,
        interaction: discord.Interaction,
        state: PaginationSession
    ) -> None:
        if state.is_empty:
            # No data left: terminal view without controls
            await interaction.response.edit_message(
                embed=self.exporter.create_no_guilds(),
                view=None
            )
            return

        view.sync(state, disabled=state.closed)
        await interaction.response.edit_message(
            embed=self.exporter.create_list_embed(state),
            view=view
        )

    async def show_stats(
        self,
        interaction: discord.Interaction,
        collection: Sequence[GuildRecord]
    ) -> None:
        """Reply with the statistics of ``collection``, visible to the invoker only."""
        if not collection:
            embed = self.exporter.create_no_guilds()
        else:
            embed = self.exporter.create_stats_embed(aggregate(collection))
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _teardown(
        self,
        view: GuildListView,
        edit: MessageEditor,
        entry: SessionEntry
    ) -> None:
        state, effects = pagination.transition(entry.state, PaginationAction.TIMEOUT)
        entry.state = state
        view.stop()

        if PaginationEffect.DISABLE_CONTROLS in effects:
            view.sync(state, disabled=True)
            try:
                await edit(view=view)
            except discord.HTTPException as exc:
                logger.warning(f"Could not disable controls of {entry.key}: {exc}")


# ---------------------------------------------------------------------------
# Leave confirmation
# ---------------------------------------------------------------------------


class LeaveConfirmView(SessionView):
    """Confirm / Cancel pair of a leave confirmation."""

    def __init__(
        self,
        flow: "ConfirmationFlow",
        record: GuildRecord,
        *,
        detail_key: Optional[str] = None,
        restore_embed: Optional[discord.Embed] = None
    ):
        super().__init__(flow, CONFIRM_KIND)
        self.record = record
        self.detail_key = detail_key
        self.restore_embed = restore_embed

    @discord.ui.button(
        label="Yes, Leave Guild",
        style=discord.ButtonStyle.danger,
        custom_id=ConfirmationAction.CONFIRM.value
    )
    async def confirm_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, ConfirmationAction.CONFIRM)

    @discord.ui.button(
        label="Cancel",
        style=discord.ButtonStyle.secondary,
        custom_id=ConfirmationAction.CANCEL.value
    )
    async def cancel_button(self, interaction: discord.Interaction, _: discord.ui.Button):
        await self.controller.handle(self, interaction, ConfirmationAction.CANCEL)


class ConfirmationFlow:
    """Runs leave confirmations spawned from detail sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        directory: GuildDirectory,
        exporter: DiscordExporter,
        *,
        timeout: float = confirmation.CONFIRM_TIMEOUT
    ):
        self.registry = registry
        self.directory = directory
        self.exporter = exporter
        self.timeout = timeout

    def open(
        self,
        invoker_id: int,
        view: LeaveConfirmView,
        message_id: int,
        edit: MessageEditor
    ) -> SessionEntry:
        """
        Register a confirmation whose controls are already on ``message_id``.

        Args:
            invoker_id: Only user allowed to confirm or cancel
            view: The rendered confirm/cancel view
            message_id: Message hosting the view
            edit: Coroutine editing that message, used on timeout
        """
        session = ConfirmationSession.open(
            invoker_id,
            view.record.id,
            timeout=self.timeout,
            now=self.registry.now()
        )
        logger.info(f"Leave confirmation for guild {view.record.id} opened by {invoker_id}")
        return self.registry.open(
            CONFIRM_KIND,
            message_id,
            session,
            partial(self._teardown, view, edit)
        )

    async def handle(
        self,
        view: LeaveConfirmView,
        interaction: discord.Interaction,
        action: ConfirmationAction
    ) -> None:
        """Resolve a confirmation. Events after resolution are stale no-ops."""
        entry = view.entry_for(interaction)
        if entry is None:
            await acknowledge(interaction)
            return

        async with entry.lock:
            state, effects = confirmation.transition(entry.state, action)
            # Resolution is committed before the leave runs so a racing confirm stays a no-op
            if not effects or not self.registry.commit(entry, state):
                await acknowledge(interaction)
                return

            view.stop()
            # The outcome is committed; an expired interaction must not skip the leave
            await acknowledge(interaction)
            try:
                embed = None
                for effect in effects:
                    if effect is ConfirmationEffect.LEAVE_GUILD:
                        embed = await self._leave(view.record, interaction.user.id)
                    elif effect is ConfirmationEffect.SHOW_CANCELLED:
                        logger.info(f"Leave of guild {view.record.id} cancelled")
                        embed = self.exporter.create_cancelled_embed()

                await interaction.edit_original_response(embed=embed, view=None)
            except discord.HTTPException as exc:
                logger.warning(f"Could not render confirmation result for {entry.key}: {exc}")
            finally:
                await self.registry.close(entry.key)
                if view.detail_key is not None:
                    await self.registry.close(view.detail_key)

    async def _leave(self, record: GuildRecord, actor_id: int) -> discord.Embed:
        try:
            await self.directory.leave(record.id, actor_id=actor_id)
        except (GuildDirectoryError, discord.HTTPException) as exc:
            logger.error(f"Failed to leave guild {record.id}: {exc}", exc_info=True)
            return self.exporter.create_leave_failed_embed()
        return self.exporter.create_left_embed(record)

    async def _teardown(
        self,
        view: LeaveConfirmView,
        edit: MessageEditor,
        entry: SessionEntry
    ) -> None:
        state, effects = confirmation.transition(entry.state, ConfirmationAction.TIMEOUT)
        entry.state = state
        view.stop()

        try:
            if ConfirmationEffect.CLEAR_CONTROLS in effects:
                # Only the controls go away; no "cancelled" notice on a plain timeout
                if view.restore_embed is not None:
                    await edit(embed=view.restore_embed, view=None)
                else:
                    await edit(view=None)
        except discord.HTTPException as exc:
            logger.warning(f"Could not clear confirmation controls of {entry.key}: {exc}")
        finally:
            if view.detail_key is not None:
                await self.registry.close(view.detail_key)


# ---------------------------------------------------------------------------
# Guild detail
# ---------------------------------------------------------------------------


class GuildDetailView(SessionView):
    """Leave Guild / Create Invite controls of a guild detail view."""

    def __init__(self, controller: "DetailController", record: GuildRecord):
        super().__init__(controller, DETAIL_KIND)
        self.record = record

        self.leave_button = discord.ui.Button(
            label="Leave Guild",
            style=discord.ButtonStyle.danger,
            emoji="🚪",
            custom_id=f"{DetailAction.LEAVE.value}_{record.id}"
        )
        self.leave_button.callback = self._on_click
        self.add_item(self.leave_button)

        self.invite_button = discord.ui.Button(
            label="Create Invite",
            style=discord.ButtonStyle.secondary,
            emoji="🔗",
            custom_id=f"{DetailAction.INVITE.value}_{record.id}"
        )
        self.invite_button.callback = self._on_click
        self.add_item(self.invite_button)

    async def _on_click(self, interaction: discord.Interaction):
        parsed = parse_custom_id((interaction.data or {}).get("custom_id", ""))
        if parsed is None or parsed[1] != self.record.id:
            await acknowledge(interaction)
            return
        await self.controller.handle(self, interaction, parsed[0])


class DetailController:
    """Runs guild detail sessions and spawns their leave confirmations."""

    def __init__(
        self,
        registry: SessionRegistry,
        directory: GuildDirectory,
        exporter: DiscordExporter,
        confirmations: ConfirmationFlow,
        *,
        timeout: float = detail.DETAIL_TIMEOUT
    ):
        self.registry = registry
        self.directory = directory
        self.exporter = exporter
        self.confirmations = confirmations
        self.timeout = timeout

    async def start(
        self,
        interaction: discord.Interaction,
        guild_id: int,
        *,
        request_leave: bool = False
    ) -> Optional[SessionEntry]:
        """
        Show one guild, or jump straight to its leave confirmation.

        Args:
            interaction: Command interaction
            guild_id: Guild to show
            request_leave: Enter the leave confirmation right away

        Returns:
            The detail session entry, or None when the guild is unknown
        """
        try:
            record = await self.directory.fetch_record(guild_id)
        except GuildNotFoundError:
            await send_reply(
                interaction,
                embed=self.exporter.create_error(
                    "Guild Not Found",
                    f"No guild found with ID: `{guild_id}`"
                )
            )
            return None

        session = DetailSession.open(
            interaction.user.id,
            record,
            timeout=self.timeout,
            now=self.registry.now()
        )

        if request_leave:
            session, _ = detail.transition(session, DetailAction.LEAVE)
            confirm_view = LeaveConfirmView(self.confirmations, record)
            message = await send_reply(
                interaction,
                embed=self.exporter.create_confirm_embed(record),
                view=confirm_view
            )
            entry = self.registry.open(
                DETAIL_KIND,
                message.id,
                session,
                partial(self._teardown, None, message.edit),
                exclusive=True
            )
            confirm_view.detail_key = entry.key
            self.confirmations.open(interaction.user.id, confirm_view, message.id, message.edit)
            return entry

        view = GuildDetailView(self, record)
        message = await send_reply(
            interaction,
            embed=self.exporter.create_detail_embed(record),
            view=view
        )
        return self.registry.open(
            DETAIL_KIND,
            message.id,
            session,
            partial(self._teardown, view, message.edit),
            exclusive=True
        )

    async def handle(
        self,
        view: GuildDetailView,
        interaction: discord.Interaction,
        action: DetailAction
    ) -> None:
        """Apply one authorized button press to its detail session."""
        entry = view.entry_for(interaction)
        if entry is None:
            await acknowledge(interaction)
            return

        async with entry.lock:
            if entry.closed:
                await acknowledge(interaction)
                return

            state, effects = detail.transition(entry.state, action, now=self.registry.now())
            if not effects:
                await acknowledge(interaction)
                return

            try:
                for effect in effects:
                    if effect is DetailEffect.OPEN_CONFIRMATION:
                        await self._open_confirmation(view, interaction, entry, state.guild)
                    elif effect is DetailEffect.CREATE_INVITE:
                        await self._create_invite(interaction, state.guild)
                self.registry.commit(entry, state)
            except Exception as exc:
                logger.error(f"Guild detail action {action.value} failed: {exc}", exc_info=True)
                await acknowledge(interaction)

    async def _open_confirmation(
        self,
        view: GuildDetailView,
        interaction: discord.Interaction,
        entry: SessionEntry,
        record: GuildRecord
    ) -> None:
        confirm_view = LeaveConfirmView(
            self.confirmations,
            record,
            detail_key=entry.key,
            restore_embed=self.exporter.create_detail_embed(record)
        )
        await interaction.response.edit_message(
            embed=self.exporter.create_confirm_embed(record),
            view=confirm_view
        )
        view.stop()
        self.confirmations.open(
            interaction.user.id,
            confirm_view,
            entry.message_id,
            interaction.edit_original_response
        )

    async def _create_invite(self, interaction: discord.Interaction, record: GuildRecord) -> None:
        try:
            url = await self.directory.create_invite(record.id)
        except InviteUnavailableError:
            embed = self.exporter.create_error(
                "No Permission",
                "Cannot create invite - no suitable channel found."
            )
        except (GuildDirectoryError, discord.HTTPException) as exc:
            logger.warning(f"Could not create invite for guild {record.id}: {exc}")
            embed = self.exporter.create_error("Failed", "Could not create invite.")
        else:
            embed = self.exporter.create_success(
                "Invite Created",
                f"**Guild:** {record.name}\n**Invite:** {url}"
            )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    async def _teardown(
        self,
        view: Optional[GuildDetailView],
        edit: MessageEditor,
        entry: SessionEntry
    ) -> None:
        state, effects = detail.transition(entry.state, DetailAction.TIMEOUT)
        entry.state = state
        if view is not None:
            view.stop()

        if DetailEffect.CLEAR_CONTROLS in effects:
            try:
                await edit(view=None)
            except discord.HTTPException as exc:
                logger.warning(f"Could not clear controls of {entry.key}: {exc}")
