import logging
import pygame
import backend
import config
import frontend
from session import load_state, save_state, start_session

log = logging.getLogger(__name__)


def persist(game_session):
    try:
        save_state(config.STATE_FILE, game_session)
    except OSError as e:
        log.warning("Could not save progress to %s: %s", config.STATE_FILE, e)


def new_game(lang, screen, restored=None, prefer_saved_lang=False):
    game_session = start_session(
        lang,
        restored=restored,
        prefer_saved_lang=prefer_saved_lang,
        max_attempts=config.MAX_ATTEMPTS,
    )
    log.info("Starting %s puzzle for day %d", game_session.lang, game_session.day_id)
    persist(game_session)
    return frontend.Game(game_session, screen)


def open_first_game(screen):
    """Today's game, or None when no word list could be loaded."""
    try:
        return new_game(config.DEFAULT_LANG, screen, load_state(config.STATE_FILE), prefer_saved_lang=True)
    except (backend.EmptyListError, backend.WordListError, FileNotFoundError) as e:
        log.error("Cannot start a puzzle: %s", e)
        return None


def handle_label(game, label):
    if label == frontend.ENTER:
        return game.submit()
    if label == frontend.DELETE:
        return game.backspace()
    return game.add_char(label)


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    pygame.init()
    pygame.display.set_caption("Guess Mosaic")

    info = pygame.display.Info()
    max_w = int(info.current_w * 0.8)
    max_h = int(info.current_h * 0.8)

    frontend.set_rows(config.MAX_ATTEMPTS)
    scale = frontend.compute_best_scale(max_w, max_h)

    frontend.setup_fonts(scale)
    SCREEN = pygame.display.set_mode((frontend.WIDTH, frontend.HEIGHT))
    CLOCK = pygame.time.Clock()

    game = open_first_game(SCREEN)
    if game is None:
        frontend.show_notice(SCREEN, "No words loaded")
        pygame.quit()
        return

    running = True
    while running:
        dt = CLOCK.tick(frontend.FPS) / 1000.0
        if backend.day_id() != game.session.day_id:
            game = new_game(game.session.lang, SCREEN)
            game.toast("A new puzzle is ready")

        for event in pygame.event.get():
            changed = False
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE and game.finished:
                    running = False
                elif not game.finished:
                    changed = frontend.handle_key(game, event)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if game.share_rect and game.share_rect.collidepoint(event.pos):
                    game.share()
                    continue
                if game.quit_rect and game.quit_rect.collidepoint(event.pos):
                    running = False
                    break

                label = game.keyboard.key_at(event.pos)
                if label == game.keyboard.toggle:
                    if game.request_switch():
                        lang = frontend.other_lang(game.session.lang)
                        game = new_game(lang, SCREEN)
                        game.toast(frontend.LANG_NAMES[lang])
                elif label:
                    log.debug("Clicked label: %s", label)
                    changed = handle_label(game, label)
            if changed:
                persist(game.session)

        game.update(dt)
        game.draw(SCREEN)
        pygame.display.flip()

    pygame.quit()


if __name__ == "__main__":
    main()
