import math
import random
import logging
import pygame
import backend
from session import InvalidGuessError

log = logging.getLogger(__name__)

BASE_WIDTH, BASE_HEIGHT = 550, 800
FPS = 60
ROWS, COLS = 6, backend.WORD_LENGTH
MARGIN_X = 32
TOP_OFFSET = 140
TILE_GAP = 10
KEYBOARD_GAP = 6
ANIM_SPEED = 0.22
POP_SCALE = 1.08

WIDTH = BASE_WIDTH
HEIGHT = BASE_HEIGHT
SCALE = 1.0

BG_TOP = (250, 250, 252)
BG_BOTTOM = (244, 246, 248)
GRID_BG = (255, 255, 255)
TILE_EMPTY = (248, 249, 250)
TILE_BORDER = (200, 205, 210)
TILE_TEXT = (20, 24, 30)
ACCENT = (0, 120, 215)

C_ABSENT = (75, 79, 92)
C_PRESENT = (201, 180, 88)
C_CORRECT = (88, 140, 103)
STATE_COLORS = {backend.ABSENT: C_ABSENT, backend.PRESENT: C_PRESENT, backend.CORRECT: C_CORRECT}

CONFETTI_COLS = [
    (236, 99, 95), (255, 211, 102), (147, 221, 119),
    (123, 178, 255), (195, 155, 211)
]

ENTER, DELETE = "ENTER", "DEL"
KB_LETTERS = {
    backend.PRIMARY: ["QWERTYUIOP", "ASDFGHJKL", "ZXCVBNM"],
    backend.SECONDARY: ["ЙЦУКЕНГШЩЗХЇ", "ФІВАПРОЛДЖЄ", "ЯЧСМИТЬБЮҐ"],
}
LANG_NAMES = {backend.PRIMARY: "Language: English", backend.SECONDARY: "Мова: Українська"}
WIN_MESSAGES = ["Genius!", "Magnificent!", "Splendid!", "Great!"]
KB_ROW_COUNT = 3
FONT_NAMES = "arial,dejavusans,freesans"


def other_lang(lang):
    return backend.SECONDARY if lang == backend.PRIMARY else backend.PRIMARY


def toggle_label(lang):
    return other_lang(lang).upper()


def kb_rows(lang):
    rows = [list(r) for r in KB_LETTERS[lang]]
    rows[-1] = [ENTER] + rows[-1] + [toggle_label(lang), DELETE]
    return rows


def set_rows(rows: int):
    global ROWS
    ROWS = max(1, int(rows))


def lerp(a, b, t):
    return a + (b - a) * t


def draw_vertical_gradient(surface, top_color, bottom_color):
    h = surface.get_height()
    for y in range(h):
        t = y / max(1, h - 1)
        r = int(lerp(top_color[0], bottom_color[0], t))
        g = int(lerp(top_color[1], bottom_color[1], t))
        b = int(lerp(top_color[2], bottom_color[2], t))
        pygame.draw.line(surface, (r, g, b), (0, y), (surface.get_width(), y))


def handle_key(game, event):
    if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
        return game.submit()
    if event.key in (pygame.K_BACKSPACE, pygame.K_DELETE):
        return game.backspace()
    ch = event.unicode
    if ch and ch.isalpha() and len(ch) == 1:
        return game.add_char(ch)
    return False


def show_notice(surface, text):
    """Draw a single message and wait for the window to be closed."""
    clock = pygame.time.Clock()
    while True:
        for event in pygame.event.get():
            if event.type == pygame.QUIT or (event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE):
                return
        draw_vertical_gradient(surface, BG_TOP, BG_BOTTOM)
        msg = UI_FONT.render(text, True, TILE_TEXT)
        surface.blit(msg, msg.get_rect(center=surface.get_rect().center))
        pygame.display.flip()
        clock.tick(FPS // 4)


def tile_size():
    available_w = WIDTH - MARGIN_X * 2 - TILE_GAP * (COLS - 1)
    size = max(16, available_w // COLS)

    for _ in range(6):
        key_h = max(34, int(size * 0.7))
        keyboard_rows = KB_ROW_COUNT
        keyboard_reserved = keyboard_rows * key_h + (keyboard_rows - 1) * KEYBOARD_GAP + int(20 * SCALE)
        available_h = HEIGHT - TOP_OFFSET - keyboard_reserved - int(24 * SCALE)
        size_h = max(16, (available_h - (ROWS - 1) * TILE_GAP) // ROWS)
        new_size = min(size, size_h)
        new_size = min(new_size, max(16, available_w // COLS))
        if new_size == size:
            break
        size = new_size

    return max(16, size)


def setup_fonts(scale: float = 1.0):
    global TITLE_FONT, UI_FONT, TILE_FONT, KEY_FONT, SCALE, WIDTH, HEIGHT, MARGIN_X, TOP_OFFSET, TILE_GAP, KEYBOARD_GAP
    SCALE = float(scale)
    WIDTH = int(BASE_WIDTH * SCALE)
    HEIGHT = int(BASE_HEIGHT * SCALE)
    MARGIN_X = int(32 * SCALE)
    TOP_OFFSET = int(140 * SCALE)
    TILE_GAP = int(max(4, 10 * SCALE))
    KEYBOARD_GAP = int(max(4, 6 * SCALE))

    try:
        TITLE_FONT = pygame.font.SysFont(FONT_NAMES, max(12, int(44 * SCALE)), bold=True)
        UI_FONT = pygame.font.SysFont(FONT_NAMES, max(10, int(18 * SCALE)))
        TILE_FONT = pygame.font.SysFont(FONT_NAMES, max(12, int(40 * SCALE)), bold=True)
        KEY_FONT = pygame.font.SysFont(FONT_NAMES, max(10, int(18 * SCALE)), bold=True)
    except (pygame.error, OSError):
        TITLE_FONT = pygame.font.SysFont(None, max(12, int(44 * SCALE)), bold=True)
        UI_FONT = pygame.font.SysFont(None, max(10, int(18 * SCALE)))
        TILE_FONT = pygame.font.SysFont(None, max(12, int(40 * SCALE)), bold=True)
        KEY_FONT = pygame.font.SysFont(None, max(10, int(18 * SCALE)), bold=True)


def compute_total_height_for_scale(scale: float) -> int:
    s = float(scale)
    width = int(BASE_WIDTH * s)
    margin_x = int(32 * s)
    top_offset = int(140 * s)
    tile_gap = int(max(4, 10 * s))
    keyboard_gap = int(max(4, 6 * s))

    available_w = width - margin_x * 2 - tile_gap * (COLS - 1)
    tile = max(16, available_w // COLS)

    key_h = max(34, int(tile * 0.7))
    keyboard_rows = KB_ROW_COUNT
    keyboard_reserved = keyboard_rows * key_h + (keyboard_rows - 1) * keyboard_gap + int(20 * s)

    grid_height = ROWS * tile + (ROWS - 1) * tile_gap

    bottom_margin = int(24 * s)

    total = top_offset + grid_height + keyboard_reserved + bottom_margin
    return total


def compute_best_scale(max_w: int, max_h: int) -> float:
    s = min(1.0, max_w / BASE_WIDTH)
    while s >= 0.5:
        total_h = compute_total_height_for_scale(s)
        total_w = int(BASE_WIDTH * s)
        if total_w <= max_w and total_h <= max_h:
            return s
        s -= 0.01
    return 0.5


class Tile:
    def __init__(self, rect):
        self.rect = pygame.Rect(rect)
        self.char = ""
        self.state = None
        self.flip_t = 0.0
        self.pop_t = 0.0

    def start_flip(self):
        self.flip_t = 1.0

    def start_pop(self):
        self.pop_t = 1.0

    def update(self, dt):
        if self.flip_t > 0:
            self.flip_t = max(0.0, self.flip_t - dt / ANIM_SPEED)
        if self.pop_t > 0:
            self.pop_t = max(0.0, self.pop_t - dt / (ANIM_SPEED * 1.2))

    def draw(self, surface):
        face_color = TILE_EMPTY if self.state is None else STATE_COLORS[self.state]
        text_color = TILE_TEXT if self.state is None else (255, 255, 255)
        flip_phase = (1 - self.flip_t)

        pop_scale = lerp(1.0, POP_SCALE, self.pop_t)

        w, h = self.rect.width, self.rect.height
        temp = pygame.Surface((w, h), pygame.SRCALPHA)
        corner = max(8, int(8 * SCALE))
        pygame.draw.rect(temp, face_color, (0, 0, w, h), border_radius=corner)
        pygame.draw.rect(temp, TILE_BORDER, (0, 0, w, h), width=max(2, int(2 * SCALE)), border_radius=corner)

        scale_y = abs(math.cos(flip_phase * math.pi))
        scaled = pygame.transform.smoothscale(temp, (int(w * pop_scale), max(1, int(h * scale_y * pop_scale))))
        cx, cy = self.rect.center
        rect = scaled.get_rect(center=(cx, cy))
        surface.blit(scaled, rect)

        if self.char:
            text = TILE_FONT.render(self.char, True, text_color)
            trect = text.get_rect(center=(cx, cy))
            if scale_y < 0.25:
                alpha = int(255 * max(0.0, (scale_y - 0.1) / 0.15))
            else:
                alpha = 255
            text.set_alpha(alpha)
            surface.blit(text, trect)


class Keyboard:
    def __init__(self, lang):
        self.lang = lang
        self.rows = kb_rows(lang)
        self.toggle = toggle_label(lang)
        self.key_states = {}

    def update_states(self, attempts, answer):
        # rebuilt from every attempt so restored games and new guesses agree
        self.key_states = backend.key_states(attempts, answer)

    def is_wide(self, label):
        return label in (ENTER, DELETE)

    def key_at(self, pos):
        layout = self.layout_rects()
        for label, rect in layout:
            if rect.collidepoint(pos):
                return label
        return None

    def layout_rects(self):
        grid_h = ROWS * tile_size() + (ROWS - 1) * TILE_GAP
        desired_kb_top = TOP_OFFSET + grid_h + int(20 * SCALE)
        key_h = max(28, int(tile_size() * 0.72))
        small_key_w = max(36, int(tile_size() * 0.95))
        large_key_w = max(56, int(tile_size() * 1.25))
        bottom_margin = int(20 * SCALE)
        keyboard_reserved = KB_ROW_COUNT * key_h + (KB_ROW_COUNT - 1) * KEYBOARD_GAP + bottom_margin

        if desired_kb_top + keyboard_reserved + bottom_margin > HEIGHT:
            kb_top = max(int(TOP_OFFSET + grid_h + int(8 * SCALE)), HEIGHT - keyboard_reserved - bottom_margin)
        else:
            kb_top = desired_kb_top
        y = kb_top
        layout = []
        avail_row_w = WIDTH - MARGIN_X * 2
        for row in self.rows:
            total_w = sum(large_key_w if self.is_wide(label) else small_key_w for label in row)
            total_w += KEYBOARD_GAP * (len(row) - 1)
            scale_row = 1.0
            if total_w > avail_row_w:
                gaps = (len(row) - 1) * KEYBOARD_GAP
                scale_row = max(0.4, (avail_row_w - gaps) / (total_w - gaps))

            row_w = sum(
                max(20, int((large_key_w if self.is_wide(label) else small_key_w) * scale_row))
                for label in row
            ) + KEYBOARD_GAP * (len(row) - 1)
            x = (WIDTH - row_w) // 2
            for label in row:
                base_w = large_key_w if self.is_wide(label) else small_key_w
                w = max(20, int(base_w * scale_row))
                layout.append((label, pygame.Rect(x, y, w, key_h)))
                x += w + KEYBOARD_GAP
            y += key_h + KEYBOARD_GAP
        return layout

    def draw(self, surface):
        layout = self.layout_rects()
        for label, rect in layout:
            rrad = max(6, int(6 * SCALE))
            state = None
            if not self.is_wide(label) and label != self.toggle:
                state = self.key_states.get(label)
            if label == self.toggle:
                base = ACCENT
                txt_color = (255, 255, 255)
                border_col = None
            elif state is None:
                base = (240, 241, 243)
                txt_color = TILE_TEXT
                border_col = (200, 205, 210)
            else:
                base = STATE_COLORS[state]
                txt_color = (255, 255, 255)
                border_col = None

            shadow = pygame.Surface((rect.width, rect.height), pygame.SRCALPHA)
            pygame.draw.rect(shadow, (0, 0, 0, 28), shadow.get_rect(), border_radius=rrad)
            surface.blit(shadow, (rect.x + 1, rect.y + 2))

            pygame.draw.rect(surface, base, rect, border_radius=rrad)
            if border_col:
                pygame.draw.rect(surface, border_col, rect, width=max(1, int(2 * SCALE)), border_radius=rrad)

            txt = KEY_FONT.render(label, True, txt_color)
            surface.blit(txt, txt.get_rect(center=rect.center))


class Game:
    def __init__(self, session, screen):
        self.session = session
        self.screen = screen
        self.grid = []
        size = tile_size()
        grid_width = COLS * size + (COLS - 1) * TILE_GAP
        grid_left = (WIDTH - grid_width) // 2
        self.grid_left = grid_left
        for r in range(ROWS):
            row = []
            for c in range(COLS):
                x = grid_left + c * (size + TILE_GAP)
                y = TOP_OFFSET + r * (size + TILE_GAP)
                row.append(Tile((x, y, size, size)))
            self.grid.append(row)
        self.particles = []
        self.keyboard = Keyboard(session.lang)
        self.message = ""
        self.msg_timer = 0.0
        self.shake_t = 0.0
        self.switch_armed = 0.0
        self.share_rect = None
        self.quit_rect = None
        self.sync()

    @property
    def finished(self):
        return self.session.game_over

    def sync(self):
        """Copy the session's letters and statuses onto the tiles."""
        statuses = self.session.statuses()
        for r, row in enumerate(self.grid):
            if r < len(self.session.attempts):
                word, states = self.session.attempts[r], statuses[r]
            elif r == len(self.session.attempts):
                word, states = self.session.current_guess, None
            else:
                word, states = "", None
            for c, tile in enumerate(row):
                tile.char = word[c] if c < len(word) else ""
                tile.state = states[c] if states else None
        self.keyboard.update_states(self.session.attempts, self.session.solution)

    def add_char(self, ch):
        if self.session.add_letter(ch):
            r, c = len(self.session.attempts), len(self.session.current_guess) - 1
            self.sync()
            self.grid[r][c].start_pop()
            return True
        return False

    def backspace(self):
        if self.session.delete_letter():
            self.sync()
            return True
        return False

    def submit(self):
        row = len(self.session.attempts)
        try:
            states = self.session.submit()
        except InvalidGuessError as e:
            self.toast(str(e))
            self.shake()
            return False
        if states is None:
            return False
        self.sync()
        for tile in self.grid[row]:
            tile.start_flip()
        if self.session.won:
            self.toast(random.choice(WIN_MESSAGES))
            self.spawn_confetti()
        elif self.session.lost:
            self.toast(self.session.solution)
        return True

    def request_switch(self):
        """True once the player has confirmed leaving an unfinished game."""
        if self.session.has_progress and not self.finished and self.switch_armed <= 0:
            self.switch_armed = 2.5
            self.toast("Press again to switch and lose progress", duration=2.5)
            return False
        return True

    def share(self):
        try:
            text = self.session.share_text()
        except InvalidGuessError as e:
            self.toast(str(e))
            return None
        try:
            if not pygame.scrap.get_init():
                pygame.scrap.init()
            pygame.scrap.put_text(text)
            self.toast("Result copied")
        except pygame.error as e:
            log.warning("Clipboard unavailable: %s", e)
            log.info("Share text:\n%s", text)
            self.toast("Result written to the log")
        return text

    def toast(self, msg, duration=1.4):
        self.message = msg
        self.msg_timer = duration

    def shake(self):
        self.shake_t = 1.0

    def spawn_confetti(self):
        cx = WIDTH // 2
        for _ in range(150):
            angle = random.uniform(-math.pi, 0)
            speed = random.uniform(120, 300)
            vx = math.cos(angle) * speed
            vy = math.sin(angle) * speed
            size = random.randint(3, 6)
            color = random.choice(CONFETTI_COLS)
            life = random.uniform(1.2, 2.0)
            self.particles.append([cx, TOP_OFFSET - 30, vx, vy, size, color, life])

    def update_confetti(self, dt):
        gravity = 400
        new = []
        for x, y, vx, vy, s, color, life in self.particles:
            vy += gravity * dt
            x += vx * dt
            y += vy * dt
            life -= dt
            if life > 0 and y < HEIGHT + 20:
                new.append([x, y, vx, vy, s, color, life])
        self.particles = new

    def update(self, dt):
        for row in self.grid:
            for tile in row:
                tile.update(dt)
        if self.msg_timer > 0:
            self.msg_timer -= dt
            if self.msg_timer <= 0:
                self.message = ""
        if self.shake_t > 0:
            self.shake_t = max(0.0, self.shake_t - dt / 0.4)
        if self.switch_armed > 0:
            self.switch_armed = max(0.0, self.switch_armed - dt)
        self.update_confetti(dt)

    def draw_modal(self, surface):
        sw, sh = surface.get_size()
        overlay = pygame.Surface((sw, sh), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        surface.blit(overlay, (0, 0))

        modal_w = min(420, sw - 2 * MARGIN_X)
        modal_h = 200
        mx = (sw - modal_w) // 2
        my = (sh - modal_h) // 2
        modal = pygame.Rect(mx, my, modal_w, modal_h)
        pygame.draw.rect(surface, (255, 255, 255), modal, border_radius=12)
        pygame.draw.rect(surface, TILE_BORDER, modal, width=2, border_radius=12)

        won = self.session.won
        if won:
            title = "You win!"
            sub = f"Solved in {len(self.session.attempts)}/{self.session.max_attempts}"
            color = C_CORRECT
        else:
            title = "Game Over"
            sub = f"Word was {self.session.solution}"
            color = (180, 40, 40)

        title_s = UI_FONT.render(title, True, color)
        surface.blit(title_s, (modal.centerx - title_s.get_width() // 2, my + 20))
        sub_s = UI_FONT.render(sub, True, TILE_TEXT)
        surface.blit(sub_s, (modal.centerx - sub_s.get_width() // 2, my + 60))

        btn_w = 140
        btn_h = 44
        pad = 24
        share = pygame.Rect(modal.left + pad, modal.bottom - pad - btn_h, btn_w, btn_h)
        quitb = pygame.Rect(modal.right - pad - btn_w, modal.bottom - pad - btn_h, btn_w, btn_h)
        pygame.draw.rect(surface, C_CORRECT if won else ACCENT, share, border_radius=8)
        pygame.draw.rect(surface, TILE_BORDER, quitb, border_radius=8)
        stxt = KEY_FONT.render("SHARE", True, (255, 255, 255))
        qtxt = KEY_FONT.render("QUIT", True, TILE_TEXT)
        surface.blit(stxt, stxt.get_rect(center=share.center))
        surface.blit(qtxt, qtxt.get_rect(center=quitb.center))

        self.share_rect = share
        self.quit_rect = quitb

    def draw(self, surface):
        draw_vertical_gradient(surface, BG_TOP, BG_BOTTOM)
        title = TITLE_FONT.render("GUESS MOSAIC", True, TILE_TEXT)
        title_rect = title.get_rect(center=(WIDTH // 2, int(48 * SCALE)))
        surface.blit(title, title_rect)
        day = self.session.day_id - backend.EPOCH_DAY
        sub = UI_FONT.render(f"{self.session.lang.upper()} · #{day}", True, C_ABSENT)
        sub_rect = sub.get_rect(center=(WIDTH // 2, title_rect.bottom + sub.get_height() // 2))
        surface.blit(sub, sub_rect)

        size = tile_size()
        grid_width = COLS * size + (COLS - 1) * TILE_GAP
        grid_height = ROWS * size + (ROWS - 1) * TILE_GAP
        outer_pad = int(12 * SCALE)
        outer_rect = pygame.Rect(
            self.grid_left - outer_pad, TOP_OFFSET - outer_pad,
            grid_width + outer_pad * 2, grid_height + outer_pad * 2,
        )
        pygame.draw.rect(surface, TILE_BORDER, outer_rect, border_radius=max(12, int(12 * SCALE)))

        inner_inset = max(6, int(6 * SCALE))
        inner_rect = outer_rect.inflate(-inner_inset * 2, -inner_inset * 2)
        pygame.draw.rect(surface, GRID_BG, inner_rect, border_radius=max(8, int(8 * SCALE)))

        dx = 0
        if self.shake_t > 0:
            dx = math.sin((1 - self.shake_t) * 30) * 8 * self.shake_t
        active = len(self.session.attempts)
        for r, row in enumerate(self.grid):
            for tile in row:
                saved = tile.rect.copy()
                if r == active:
                    tile.rect.x = saved.x + int(dx)
                tile.draw(surface)
                tile.rect = saved

        if self.message:
            toast_surf = UI_FONT.render(self.message, True, (255, 255, 255))
            pad = max(8, int(12 * SCALE))
            toast_y = sub_rect.bottom + (TOP_OFFSET - sub_rect.bottom) // 2
            rect = toast_surf.get_rect(center=(WIDTH // 2, toast_y))
            bg = pygame.Surface((rect.width + pad * 2, rect.height + pad * 2), pygame.SRCALPHA)
            pygame.draw.rect(bg, (0, 0, 0, 140), bg.get_rect(), border_radius=max(8, int(8 * SCALE)))
            surface.blit(bg, bg.get_rect(center=rect.center))
            surface.blit(toast_surf, rect)

        self.keyboard.draw(surface)

        for x, y, vx, vy, s, color, life in self.particles:
            pygame.draw.rect(surface, color, pygame.Rect(int(x), int(y), s, s))

        if self.finished and not self.particles and self.msg_timer <= 0:
            self.draw_modal(surface)
        else:
            self.share_rect = None
            self.quit_rect = None
