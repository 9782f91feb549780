"""
Rich-based renderer for showcase statistics and board feeds.

Turns a DashboardSnapshot or a FeedState into Rich renderables for the
``showcase dashboard`` and ``showcase board`` commands.
"""

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from showcase.core.dashboard.models import (
    CountBucket,
    DashboardSnapshot,
    EstimatedSeries,
    RankedCount,
    TimelinePoint,
)
from showcase.core.feed.controller import ConnectionStatus, FeedState
from showcase.core.records import PostRecord, Record

ESTIMATED_LABEL = "estimated / unavailable"

STATUS_COLORS = {
    ConnectionStatus.IDLE: "dim",
    ConnectionStatus.CONNECTING: "yellow",
    ConnectionStatus.CONNECTED: "green",
    ConnectionStatus.ERROR: "red",
}


class DashboardRenderer:
    """
    Render showcase statistics and live feeds using Rich.

    Example:
        >>> renderer = DashboardRenderer()
        >>> renderer.console.print(renderer.render_snapshot(snapshot))
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    # -------------------------------------------------------------------------
    # Dashboard snapshot
    # -------------------------------------------------------------------------

    def render_snapshot(self, snapshot: DashboardSnapshot) -> Group:
        """
        Render every statistics slice of a snapshot.

        Slices that were replaced by zero values are flagged in the header.
        """
        parts: list[RenderableType] = [self._render_header(snapshot)]
        parts.append(self._render_projects(snapshot))
        parts.append(self._render_board(snapshot))
        parts.append(self._render_users(snapshot))
        parts.append(self._render_tech(snapshot))
        return Group(*parts)

    def _render_header(self, snapshot: DashboardSnapshot) -> Panel:
        lines = [
            Text("SHOWCASE DASHBOARD", style="bold cyan", justify="center"),
            Text(
                f"Last updated: {snapshot.last_updated.strftime('%Y-%m-%d %H:%M:%S UTC')}",
                style="dim",
                justify="center",
            ),
        ]
        if snapshot.degraded:
            lines.append(
                Text(
                    f"Unavailable: {', '.join(snapshot.degraded_slices)} (showing zeros)",
                    style="bold yellow",
                    justify="center",
                )
            )
        return Panel(
            Group(*lines),
            border_style="yellow" if snapshot.degraded else "cyan",
            padding=(0, 1),
        )

    def _render_projects(self, snapshot: DashboardSnapshot) -> Panel:
        stats = snapshot.project
        summary = self._summary({"Projects": stats.total_projects})

        recent = Table(title="Recent projects", show_header=True, header_style="bold")
        recent.add_column("Title")
        recent.add_column("Category", style="dim")
        recent.add_column("Created", style="dim")
        for project in stats.recent_projects:
            recent.add_row(
                project.title,
                project.category or "-",
                project.created_at.strftime("%Y-%m-%d") if project.created_at else "-",
            )

        return Panel(
            Group(
                summary,
                self._render_buckets("Categories", stats.category_distribution),
                self._render_buckets("API key requirement", stats.integration_distribution),
                recent,
                self._render_timeline("Projects per month", stats.projects_over_time),
            ),
            title="[bold]Projects[/bold]",
            border_style="blue",
        )

    def _render_board(self, snapshot: DashboardSnapshot) -> Panel:
        stats = snapshot.board
        summary = self._summary({"Posts": stats.total_posts, "Comments": stats.total_comments})

        popular = Table(title="Most viewed posts", show_header=True, header_style="bold")
        popular.add_column("Title")
        popular.add_column("Author", style="dim")
        popular.add_column("Views", justify="right")
        popular.add_column("Likes", justify="right")
        for post in stats.popular_posts:
            popular.add_row(post.title, post.author_name, str(post.view_count), str(post.like_count))

        return Panel(
            Group(
                summary,
                self._render_buckets("Categories", stats.category_distribution),
                popular,
                self._render_timeline("Posts per month", stats.posts_over_time),
            ),
            title="[bold]Board[/bold]",
            border_style="magenta",
        )

    def _render_users(self, snapshot: DashboardSnapshot) -> Panel:
        stats = snapshot.user
        summary = self._summary({"Users": stats.total_users, "Visitors": stats.total_visitors})

        contributors = Table(title="Top contributors", show_header=True, header_style="bold")
        contributors.add_column("Name")
        contributors.add_column("Posts", justify="right")
        for contributor in stats.top_contributors:
            contributors.add_row(contributor.user_name, str(contributor.post_count))

        return Panel(
            Group(
                summary,
                contributors,
                self._render_estimate("Visits by hour", stats.visits_by_hour),
                self._render_estimate("Activity by day", stats.activity_by_day),
            ),
            title="[bold]Users[/bold]",
            border_style="green",
        )

    def _render_tech(self, snapshot: DashboardSnapshot) -> Panel:
        stats = snapshot.tech
        summary = self._summary(
            {
                "Technologies": stats.total_technologies,
                "Development tools": stats.total_development_tools,
            }
        )
        return Panel(
            Group(
                summary,
                self._render_ranked("Top technologies", stats.top_technologies),
                self._render_ranked("Top development tools", stats.top_development_tools),
            ),
            title="[bold]Tech stack[/bold]",
            border_style="cyan",
        )

    # -------------------------------------------------------------------------
    # Feed state
    # -------------------------------------------------------------------------

    def render_feed(self, state: FeedState, title: str = "Board") -> Group:
        """
        Render a feed state: connection banner plus the visible records.

        While in the error state the records shown are the last good ones and
        are dimmed as stale.
        """
        parts: list[RenderableType] = [self._render_connection(state)]

        table = Table(
            title=f"{title} ({len(state.visible_records)} of {state.total_matches})",
            show_header=True,
            header_style="bold",
            style="dim" if state.stale else None,
        )
        table.add_column("Title")
        table.add_column("Author", style="dim")
        table.add_column("Category", style="dim")
        table.add_column("Views", justify="right")
        table.add_column("Likes", justify="right")
        table.add_column("Created", style="dim")

        for record in state.visible_records:
            table.add_row(*self._feed_row(record))

        if state.visible_records:
            parts.append(table)
        elif state.connection_status is ConnectionStatus.CONNECTED:
            parts.append(Text("No posts match the current filters", style="dim italic"))

        return Group(*parts)

    def _render_connection(self, state: FeedState) -> Panel:
        color = STATUS_COLORS[state.connection_status]
        text = Text()
        text.append("Connection: ", style="bold")
        text.append(state.connection_status.value.upper(), style=f"bold {color}")

        options = state.current_options
        text.append(
            f"   category={options.category} status={options.status} "
            f"sort={options.sort_key.value}",
            style="dim",
        )
        if options.search_term:
            text.append(f" search={options.search_term!r}", style="dim")

        lines: list[RenderableType] = [text]
        if state.error is not None:
            lines.append(Text(state.error.message, style="red"))
            if state.stale:
                lines.append(Text("Showing the last loaded posts (out of date)", style="yellow"))
            if state.error.retryable:
                lines.append(Text("Press Ctrl+C and run the command again to retry", style="dim"))

        return Panel(Group(*lines), border_style=color, padding=(0, 1))

    @staticmethod
    def _feed_row(record: Record) -> tuple[str, ...]:
        created = record.created_at.strftime("%Y-%m-%d %H:%M") if record.created_at else "-"
        if isinstance(record, PostRecord):
            title = f"📌 {record.title}" if record.is_pinned else record.title
            return (
                title,
                record.author.display_name,
                record.category or "-",
                str(record.view_count),
                str(record.like_count),
                created,
            )
        title = getattr(record, "title", record.id)
        return (title, "-", "-", str(record.view_total()), str(record.like_total()), created)

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------

    @staticmethod
    def _summary(values: dict[str, int]) -> Table:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold cyan", justify="right")
        grid.add_column()
        for label, value in values.items():
            grid.add_row(f"{label}:", f"{value:,}")
        return grid

    @staticmethod
    def _render_buckets(title: str, buckets: list[CountBucket]) -> RenderableType:
        if not buckets:
            return Text(f"{title}: none", style="dim italic")
        table = Table(title=title, show_header=False, box=None, padding=(0, 2))
        table.add_column()
        table.add_column(justify="right")
        for bucket in buckets:
            table.add_row(bucket.name, str(bucket.count))
        return table

    @staticmethod
    def _render_ranked(title: str, entries: list[RankedCount]) -> RenderableType:
        if not entries:
            return Text(f"{title}: none", style="dim italic")
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Name")
        table.add_column("Projects", justify="right")
        table.add_column("Share", justify="right")
        for entry in entries:
            table.add_row(entry.name, str(entry.count), f"{entry.percentage}%")
        return table

    @staticmethod
    def _render_timeline(title: str, points: list[TimelinePoint]) -> RenderableType:
        table = Table(title=title, show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column(justify="right")
        table.add_column()
        peak = max((point.count for point in points), default=0)
        for point in points:
            width = round(20 * point.count / peak) if peak else 0
            table.add_row(point.date, str(point.count), "█" * width)
        return table

    @staticmethod
    def _render_estimate(title: str, series: EstimatedSeries) -> Text:
        if series.available:
            return Text(title, style="bold")
        text = Text()
        text.append(f"{title}: ", style="bold")
        text.append(ESTIMATED_LABEL, style="yellow")
        text.append(f"  ({series.note})", style="dim")
        return text
