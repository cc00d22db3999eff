"""Markup for each dashboard screen."""

from collections.abc import Callable

from tegratop.models import Sample
from tegratop.state import ControlItem, ControlPanel, ScreenState, ViewData

BAR_WIDTH = 20


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{int(size):5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_frequency(hz: int) -> str:
    """Format a frequency in Hz as MHz or GHz."""
    if hz >= 1_000_000_000:
        return f"{hz / 1_000_000_000:.2f}GHz"
    return f"{hz / 1_000_000:.0f}MHz"


def format_uptime(seconds: float) -> str:
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def bar(percent: float, color: str = "green") -> str:
    """A bracketed percentage bar in console markup."""
    filled = min(max(int(percent / (100 / BAR_WIDTH)), 0), BAR_WIDTH)
    cells = f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (BAR_WIDTH - filled)
    # Escaped so the brackets are not read as markup
    return f"\\[{cells}]"


def _percent(used: int, total: int) -> float:
    return used * 100.0 / total if total > 0 else 0.0


def _escape(text: str) -> str:
    return text.replace("[", "\\[")


def render_overview(sample: Sample) -> str:
    cpu, acc, mem = sample.cpu, sample.accelerator, sample.memory
    return "\n".join(
        [
            f"CPU {bar(cpu.usage)} {cpu.usage:5.1f}%",
            f"GPU {bar(acc.usage, 'magenta')} {acc.usage:5.1f}%",
            f"Mem {bar(_percent(mem.ram_used, mem.ram_total), 'cyan')} "
            f"{format_bytes(mem.ram_used)}/{format_bytes(mem.ram_total)}",
            f"Swp {bar(_percent(mem.swap_used, mem.swap_total), 'yellow')} "
            f"{format_bytes(mem.swap_used)}/{format_bytes(mem.swap_total)}",
            "",
            f"Temp  CPU {sample.thermal.cpu:5.1f}C  GPU {sample.thermal.gpu:5.1f}C",
            f"Power {sample.power.total:6.2f}W",
            f"Fan   {sample.cooling.duty:5.1f}% ({sample.cooling.mode.value}) at {sample.cooling.temperature:.1f}C",
            f"Mode  {_escape(sample.profile.profile_name)}"
            f"{'  [bold]boost[/bold]' if sample.profile.boost_enabled else ''}",
            f"Procs {sample.process_count}",
            f"Uptime: {format_uptime(sample.uptime_seconds)}",
        ]
    )


def render_cpu(sample: Sample) -> str:
    if not sample.cpu.cores:
        return "No CPU information available"
    lines = []
    for core in sample.cpu.cores:
        lines.append(
            f"CPU{core.index:<2} {bar(core.usage)} {core.usage:5.1f}% "
            f"{format_frequency(core.frequency):>8} {_escape(core.governor)}"
        )
    lines.append(f"\nTotal {sample.cpu.usage:5.1f}%")
    return "\n".join(lines)


def render_accelerator(sample: Sample) -> str:
    acc = sample.accelerator
    lines = [
        f"GPU {_escape(acc.name) or 'unknown'} ({acc.source})",
        f"Load {bar(acc.usage, 'magenta')} {acc.usage:5.1f}%",
        f"Freq {format_frequency(acc.frequency)} / {format_frequency(acc.max_frequency)}",
        f"Temp {acc.temperature:5.1f}C",
    ]
    if acc.governor:
        lines.append(f"Governor {_escape(acc.governor)}")
    if acc.memory_total:
        lines.append(f"Memory {format_bytes(acc.memory_used)}/{format_bytes(acc.memory_total)}")
    if acc.processes:
        lines.append("")
        lines.append(f"{'PID':>7} {'USER':<10} {'MEM':>7} Command")
        for process in acc.processes:
            lines.append(
                f"{process.pid:>7} {_escape(process.username[:10]):<10} "
                f"{format_bytes(process.memory):>7} {_escape(process.name)}"
            )
    lines.append("")
    for engine in sample.engines:
        state = format_frequency(engine.frequency) if engine.enabled else "[dim]off[/dim]"
        lines.append(f"{engine.name:<6} {state}")
    return "\n".join(lines)


def render_memory(sample: Sample) -> str:
    mem = sample.memory
    lines = [
        f"Mem {bar(_percent(mem.ram_used, mem.ram_total), 'cyan')} "
        f"{format_bytes(mem.ram_used)}/{format_bytes(mem.ram_total)}",
        f"    cached {format_bytes(mem.ram_cached)}",
        f"Swp {bar(_percent(mem.swap_used, mem.swap_total), 'yellow')} "
        f"{format_bytes(mem.swap_used)}/{format_bytes(mem.swap_total)}",
        f"    cached {format_bytes(mem.swap_cached)}",
    ]
    if mem.iram_total:
        lines.append(
            f"IRAM {format_bytes(mem.iram_used)}/{format_bytes(mem.iram_total)} "
            f"(lfb {format_bytes(mem.iram_lfb)})"
        )
    lines.append(f"\nProcesses {sample.process_count}")
    return "\n".join(lines)


def render_power(sample: Sample) -> str:
    if not sample.power.rails:
        return "No power monitor found"
    lines = [f"{'Rail':<16} {'mA':>8} {'mV':>8} {'mW':>9}"]
    for rail in sample.power.rails:
        lines.append(
            f"{_escape(rail.name[:16]):<16} {rail.current:8.0f} {rail.voltage:8.0f} {rail.power:9.0f}"
        )
    lines.append(f"\nTotal {sample.power.total:6.2f}W")
    return "\n".join(lines)


def render_temperature(sample: Sample) -> str:
    if not sample.thermal.zones:
        return "No thermal zones found"
    lines = [f"{'Zone':<16} {'Now':>7} {'Trip':>7} {'Crit':>7}"]
    for zone in sample.thermal.zones:
        lines.append(
            f"{_escape(zone.name[:16]):<16} {zone.current:6.1f}C {zone.trip:6.1f}C {zone.critical:6.1f}C"
        )
    return "\n".join(lines)


def render_control(sample: Sample, panel: ControlPanel) -> str:
    profile = sample.profile
    names = {p.profile_id: p.name for p in profile.profiles}
    rows = {
        ControlItem.FAN: f"Fan duty   {panel.duty:3d}%  (now {sample.cooling.duty:5.1f}%, "
        f"{sample.cooling.rpm} rpm, {sample.cooling.mode.value})",
        ControlItem.BOOST: f"Boost      {'on' if profile.boost_enabled else 'off'}",
        ControlItem.PROFILE: f"Profile    {panel.profile_id} {_escape(names.get(panel.profile_id, ''))} "
        f"(now {profile.profile_id} {_escape(profile.profile_name)})",
    }
    lines = []
    for item, text in rows.items():
        marker = "[reverse]" if item is panel.selected else ""
        end = "[/reverse]" if item is panel.selected else ""
        lines.append(f"{marker}{text}{end}")
    lines.append("")
    lines.append("[dim]up/down select, left/right adjust, enter apply[/dim]")
    if panel.status:
        lines.append(_escape(panel.status))
    return "\n".join(lines)


def render_info(sample: Sample) -> str:
    board = sample.board
    return "\n".join(
        [
            f"Model    {_escape(board.model)}",
            f"SoC      {board.soc}",
            f"JetPack  {board.jetpack}",
            f"L4T      {board.l4t}",
            f"Serial   {_escape(board.serial)}",
            f"Hostname {_escape(board.hostname)}",
            f"Kernel   {_escape(board.kernel)}",
            f"Uptime   {format_uptime(sample.uptime_seconds)}",
        ]
    )


RENDERERS: dict[ScreenState, Callable[[Sample], str]] = {
    ScreenState.OVERVIEW: render_overview,
    ScreenState.CPU: render_cpu,
    ScreenState.ACCELERATOR: render_accelerator,
    ScreenState.MEMORY: render_memory,
    ScreenState.POWER: render_power,
    ScreenState.TEMPERATURE: render_temperature,
    ScreenState.INFO: render_info,
}


def render_view(view: ViewData) -> str:
    """Markup for one render instruction."""
    if view.screen is ScreenState.CONTROL:
        return render_control(view.sample, view.control or ControlPanel())
    return RENDERERS[view.screen](view.sample)
