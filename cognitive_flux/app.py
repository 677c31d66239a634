"""Pygame UI shell for Cognitive Flux.

Deterministic timing/scoring/RNG/state lives in the core modules; this module
only turns key presses into session calls and draws snapshots.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import RealClock
from .cognitive_core import Phase, SessionSnapshot, clamp_int
from .results import summarize_log
from .session import FluxSession, build_flux_session
from .settings import (
    BASE_TIMER_MAX_S,
    BASE_TIMER_MIN_S,
    N_BACK_MAX,
    N_BACK_MIN,
    GameConfig,
    SettingsStore,
)
from .stimulus import (
    ALL_FAMILIES,
    AnalogyVisuals,
    CausalVisuals,
    ComparisonVisuals,
    ConditionalVisuals,
    DeicticVisuals,
    DictionaryPlacement,
    FeatureVisuals,
    HierarchyVisuals,
    OppositionVisuals,
    SpatialVisuals,
    StimulusData,
)

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
HEADER_BG = (18, 30, 118)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
GOOD = (120, 220, 140)
BAD = (240, 120, 120)
WARN = (245, 200, 90)

LEFT_KEYS = (pygame.K_d, pygame.K_LEFT)
RIGHT_KEYS = (pygame.K_j, pygame.K_RIGHT)
CONFIRM_KEYS = (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE)

TIMER_CHOICES: tuple[int | None, ...] = (None, *range(BASE_TIMER_MIN_S, BASE_TIMER_MAX_S + 1))


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


@dataclass(frozen=True, slots=True)
class MenuItem:
    label: str
    action: Callable[[], None]


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def pop(self) -> None:
        # Never pop the root screen; it handles its own quit.
        if len(self._screens) > 1:
            self._screens.pop()

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def update(self) -> None:
        if not self._screens:
            return
        tick = getattr(self._screens[-1], "update", None)
        if tick is not None:
            tick()

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def _draw_frame(surface: pygame.Surface, title: str, tag: str, font: pygame.font.Font) -> pygame.Rect:
    """Paint the shared panel chrome and return the content rect."""

    w, h = surface.get_size()
    surface.fill(BG)
    margin = max(10, min(26, w // 34))
    frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
    pygame.draw.rect(surface, PANEL_BG, frame)
    pygame.draw.rect(surface, BORDER, frame, 2)

    header_h = max(34, min(52, h // 8))
    header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, header_h)
    pygame.draw.rect(surface, HEADER_BG, header)
    pygame.draw.line(surface, BORDER, (header.x, header.bottom), (header.right, header.bottom), 1)

    small = pygame.font.Font(None, 22)
    tag_surf = small.render(tag, True, TEXT_MUTED)
    surface.blit(tag_surf, (header.x + 12, header.y + (header.h - tag_surf.get_height()) // 2))
    title_surf = font.render(title, True, TEXT_MAIN)
    surface.blit(title_surf, title_surf.get_rect(center=(frame.centerx, header.centery)))

    return pygame.Rect(frame.x + 16, header.bottom + 12, frame.w - 32, frame.bottom - header.bottom - 24)


class MenuScreen:
    def __init__(self, app: App, title: str, items: list[MenuItem], *, is_root: bool = False) -> None:
        self._app = app
        self._title = title
        self._items = items
        self._selected = 0
        self._is_root = is_root
        self._title_font = pygame.font.Font(None, 42)
        self._item_font = pygame.font.Font(None, 32)

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._selected = (self._selected - 1) % len(self._items)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._selected = (self._selected + 1) % len(self._items)
        elif event.key in CONFIRM_KEYS:
            self._items[self._selected].action()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            if self._is_root:
                self._app.quit()
            else:
                self._app.pop()

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, self._title, "MENU", self._title_font)
        row_h = 44
        y = content.y + max(8, (content.h - row_h * len(self._items)) // 2)
        for idx, item in enumerate(self._items):
            row = pygame.Rect(content.x + 40, y, content.w - 80, row_h - 6)
            if idx == self._selected:
                pygame.draw.rect(surface, (244, 248, 255), row)
                color = (14, 26, 74)
            else:
                pygame.draw.rect(surface, (62, 84, 152), row, 1)
                color = TEXT_MAIN
            text = self._item_font.render(item.label, True, color)
            surface.blit(text, (row.x + 10, row.y + (row.h - text.get_height()) // 2))
            y += row_h


def describe_visuals(stim: StimulusData) -> list[str]:
    """Plain-text rendering of a stimulus payload, one line per row."""

    v = stim.visuals
    if isinstance(v, FeatureVisuals):
        a, b = (v.end, v.start) if v.is_swapped else (v.start, v.end)
        return [f"[{a.color} {a.shape}]      [{b.color} {b.shape}]"]
    if isinstance(v, ComparisonVisuals):
        return [
            f"{v.left_leaf} --{v.left_link}--> {v.hub}",
            f"{v.right_leaf} --{v.right_link}--> {v.hub}",
        ]
    if isinstance(v, OppositionVisuals):
        return [f"{link.left} --{link.code}--> {link.right}" for link in v.chain]
    if isinstance(v, HierarchyVisuals):
        left, pivot, right = v.nodes
        return [f"{left} --{v.link_ab}--> {pivot}", f"{pivot} --{v.link_bc}--> {right}"]
    if isinstance(v, CausalVisuals):
        parts = [v.nodes[0]]
        for op, node in zip(v.ops, v.nodes[1:]):
            parts.append(f"--{op}--> {node}")
        lines = [" ".join(parts)]
        if v.start_color is not None:
            lines.insert(0, f"STRAIN: {v.start_color}")
        return lines
    if isinstance(v, SpatialVisuals):
        return [f"FACING {v.start_heading}", "  ".join(v.sequence)]
    if isinstance(v, DeicticVisuals):
        grid = ["."] * 9
        grid[v.active_pos] = "@"
        grid[v.target_pos] = "T"
        rows = [" ".join(grid[i : i + 3]) for i in (0, 3, 6)]
        return [f"{v.active_code} faces {v.active_face}", *rows]
    if isinstance(v, ConditionalVisuals):
        return [f"START {v.start_color}", " > ".join(v.modifiers)]
    if isinstance(v, AnalogyVisuals):
        return [
            f"{v.net1.left} --{v.net1.op}--> {v.net1.right}",
            f"{v.net2.left} --{v.net2.op}--> {v.net2.right}",
        ]
    return []


def answer_labels(snap: SessionSnapshot) -> tuple[str, str]:
    """Labels for the (left, right) answer buttons."""

    yes, no = ("TRUE", "FALSE") if snap.repair is not None else ("MATCH", "NO MATCH")
    return (no, yes) if snap.buttons_flipped else (yes, no)


def claim_for_side(snap: SessionSnapshot, *, left: bool) -> bool:
    """Map a pressed side to the claim it carries."""

    return left != snap.buttons_flipped


class FluxScreen:
    def __init__(self, app: App, *, session: FluxSession, store: SettingsStore) -> None:
        self._app = app
        self._session = session
        self._store = store
        self._big_font = pygame.font.Font(None, 38)
        self._font = pygame.font.Font(None, 28)
        self._small_font = pygame.font.Font(None, 22)

    @property
    def session(self) -> FluxSession:
        return self._session

    def update(self) -> None:
        # Only ticked while on top of the stack.
        self._session.resume()
        self._session.update()

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        self._session.resume()
        key = event.key
        phase = self._session.phase

        if key == pygame.K_ESCAPE:
            self._session.pause()
            self._app.pop()
        elif key == pygame.K_s:
            self._session.pause()
            self._app.push(SettingsScreen(self._app, session=self._session, store=self._store))
        elif key == pygame.K_r:
            self._session.reset_rating()
        elif key in CONFIRM_KEYS:
            if phase is Phase.IDLE:
                self._session.start()
            elif phase is Phase.FEEDBACK:
                self._session.advance()
        elif key in LEFT_KEYS or key in RIGHT_KEYS:
            snap = self._session.snapshot()
            self._session.submit_answer(claim_for_side(snap, left=key in LEFT_KEYS))

    def render(self, surface: pygame.Surface) -> None:
        snap = self._session.snapshot()
        mode = "PRACTICE" if snap.is_practice_mode else f"{snap.n_back_level}-BACK"
        content = _draw_frame(surface, "Cognitive Flux", mode, self._big_font)

        status = f"Rating {snap.active_rating}"
        if snap.is_practice_mode:
            status += f"  (saved {snap.persisted_rating})"
        status += f"   Turn {snap.turn_count}   {snap.phase.value.upper()}"
        surface.blit(self._small_font.render(status, True, TEXT_MUTED), (content.x, content.y))

        if snap.phase is Phase.IDLE:
            self._blit_center(surface, content, "Press Enter to start", self._big_font, TEXT_MAIN)
            return

        stim = snap.stimulus
        if stim is None:
            return
        self._render_timer(surface, content, snap)
        self._render_cipher(surface, content, stim)

        y = content.y + 60
        if snap.repair is not None:
            banner = f"REPAIR {snap.repair.family}  {snap.repair.successes}/{snap.repair.required}"
            surface.blit(self._font.render(banner, True, WARN), (content.centerx - 180, y))
            y += 34
        surface.blit(self._small_font.render(stim.family.label, True, TEXT_MUTED), (content.centerx - 180, y))
        y += 28
        for line in describe_visuals(stim):
            surface.blit(self._font.render(line, True, TEXT_MAIN), (content.centerx - 180, y))
            y += 30
        y += 10
        surface.blit(self._font.render(snap.query_text, True, TEXT_MAIN), (content.centerx - 180, y))

        if snap.phase is Phase.FEEDBACK:
            self._render_feedback(surface, content, snap)
        elif snap.phase is Phase.WARMUP:
            hint = f"Memorise. Judging starts after {snap.n_back_level} item(s)."
            self._blit_bottom(surface, content, f"{hint}   D/J: next", TEXT_MUTED)
        else:
            left, right = answer_labels(snap)
            self._blit_bottom(surface, content, f"D/<-: {left}      J/->: {right}", TEXT_MAIN)

    def _render_timer(self, surface: pygame.Surface, content: pygame.Rect, snap: SessionSnapshot) -> None:
        if snap.time_budget_s is None or snap.time_remaining_s is None:
            return
        bar = pygame.Rect(content.x, content.y + 26, content.w, 8)
        pygame.draw.rect(surface, (62, 84, 152), bar, 1)
        frac = 0.0 if snap.time_budget_s <= 0 else snap.time_remaining_s / snap.time_budget_s
        fill = bar.inflate(-2, -2)
        fill.w = int(fill.w * max(0.0, min(1.0, frac)))
        pygame.draw.rect(surface, WARN if frac < 0.25 else GOOD, fill)

    def _render_cipher(self, surface: pygame.Surface, content: pygame.Rect, stim: StimulusData) -> None:
        x = content.x if stim.dictionary_placement is DictionaryPlacement.LEFT else content.right - 200
        y = content.y + 60
        surface.blit(self._small_font.render("KEY", True, TEXT_MUTED), (x, y))
        for entry in stim.cipher:
            y += 22
            surface.blit(self._small_font.render(f"{entry.code} = {entry.label}", True, TEXT_MAIN), (x, y))
        if stim.context_colors:
            y += 22
            ctx = ", ".join(stim.context_colors)
            surface.blit(self._small_font.render(f"CONTEXT {ctx}", True, TEXT_MUTED), (x, y))

    def _render_feedback(self, surface: pygame.Surface, content: pygame.Rect, snap: SessionSnapshot) -> None:
        entry = snap.last_entry
        if entry is None:
            return
        verdict = "TIMEOUT" if entry.timed_out else ("CORRECT" if entry.is_correct else "WRONG")
        color = GOOD if entry.is_correct else BAD
        lines = [f"{verdict}   {entry.current_item.stimulus.proof_text}"]
        if entry.n_back_item is not None:
            lines.append(f"now {entry.current_item.result}  vs  {snap.n_back_level}-back {entry.n_back_item.result}")
        summary = summarize_log(self._session.log)
        lines.append(f"{summary.correct}/{summary.attempted} correct   Enter: continue")
        y = content.bottom - 30 * len(lines)
        for line in lines:
            surface.blit(self._font.render(line, True, color), (content.x, y))
            y += 30
            color = TEXT_MUTED

    def _blit_center(
        self,
        surface: pygame.Surface,
        content: pygame.Rect,
        text: str,
        font: pygame.font.Font,
        color: tuple[int, int, int],
    ) -> None:
        surf = font.render(text, True, color)
        surface.blit(surf, surf.get_rect(center=content.center))

    def _blit_bottom(self, surface: pygame.Surface, content: pygame.Rect, text: str, color: tuple[int, int, int]) -> None:
        surf = self._font.render(text, True, color)
        surface.blit(surf, surf.get_rect(midbottom=(content.centerx, content.bottom)))


class SettingsScreen:
    """Edits a draft GameConfig; Enter saves and applies, Esc discards."""

    _ROWS = ("N-Back level", "Base timer", "Practice mode", "Practice family")

    def __init__(self, app: App, *, session: FluxSession, store: SettingsStore) -> None:
        self._app = app
        self._session = session
        self._store = store
        self._draft = session.config
        self._row = 0
        self._title_font = pygame.font.Font(None, 42)
        self._font = pygame.font.Font(None, 30)

    @property
    def draft(self) -> GameConfig:
        return self._draft

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in (pygame.K_UP, pygame.K_w):
            self._row = (self._row - 1) % len(self._ROWS)
        elif event.key in (pygame.K_DOWN, pygame.K_s):
            self._row = (self._row + 1) % len(self._ROWS)
        elif event.key in (pygame.K_LEFT, pygame.K_a):
            self._adjust(-1)
        elif event.key in (pygame.K_RIGHT, pygame.K_d):
            self._adjust(1)
        elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._store.save_config(self._draft)
            self._session.apply_config(self._draft)
            self._app.pop()
        elif event.key in (pygame.K_ESCAPE, pygame.K_BACKSPACE):
            self._app.pop()

    def _adjust(self, delta: int) -> None:
        d = self._draft
        if self._row == 0:
            n = clamp_int(d.n_back_level + delta, N_BACK_MIN, N_BACK_MAX)
            self._draft = GameConfig(n, d.base_timer_s, d.is_practice_mode, d.practice_family)
        elif self._row == 1:
            idx = clamp_int(TIMER_CHOICES.index(d.base_timer_s) + delta, 0, len(TIMER_CHOICES) - 1)
            self._draft = GameConfig(d.n_back_level, TIMER_CHOICES[idx], d.is_practice_mode, d.practice_family)
        elif self._row == 2:
            self._draft = GameConfig(d.n_back_level, d.base_timer_s, not d.is_practice_mode, d.practice_family)
        else:
            choices = (None, *ALL_FAMILIES)
            idx = (choices.index(d.practice_family) + delta) % len(choices)
            self._draft = GameConfig(d.n_back_level, d.base_timer_s, d.is_practice_mode, choices[idx])

    def _value(self, row: int) -> str:
        d = self._draft
        if row == 0:
            return str(d.n_back_level)
        if row == 1:
            return "Infinite" if d.base_timer_s is None else f"{d.base_timer_s}s"
        if row == 2:
            return "On" if d.is_practice_mode else "Off"
        return "Mixed" if d.practice_family is None else d.practice_family.label

    def render(self, surface: pygame.Surface) -> None:
        content = _draw_frame(surface, "Settings", "CONFIG", self._title_font)
        y = content.y + 30
        for idx, label in enumerate(self._ROWS):
            color = WARN if idx == self._row else TEXT_MAIN
            surface.blit(self._font.render(label, True, color), (content.x + 60, y))
            surface.blit(self._font.render(f"< {self._value(idx)} >", True, color), (content.centerx + 40, y))
            y += 46
        hint = pygame.font.Font(None, 22).render("Up/Down: row  Left/Right: change  Enter: save  Esc: cancel", True, TEXT_MUTED)
        surface.blit(hint, hint.get_rect(midbottom=(content.centerx, content.bottom)))


def _new_seed() -> int:
    return random.SystemRandom().randint(1, 2**31 - 1)


def run(*, max_frames: int | None = None, event_injector: Callable[[int], None] | None = None) -> int:
    pygame.init()

    pygame.display.set_caption("Cognitive Flux")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)

    store = SettingsStore(SettingsStore.default_path())
    session = build_flux_session(clock=RealClock(), seed=_new_seed(), store=store)
    logger.info("settings store at %s, rating %d", store.path, session.persisted_rating)

    def open_session() -> None:
        app.push(FluxScreen(app, session=session, store=store))

    main_items = [
        MenuItem("Start Session", open_session),
        MenuItem("Settings", lambda: app.push(SettingsScreen(app, session=session, store=store))),
        MenuItem("Reset Rating", session.reset_rating),
        MenuItem("Quit", app.quit),
    ]
    app.push(MenuScreen(app, "Main Menu", main_items, is_root=True))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.update()
            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(TARGET_FPS)
    finally:
        pygame.quit()

    return 0
