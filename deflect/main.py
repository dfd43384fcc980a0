from __future__ import annotations

import argparse
import logging
import os
import sys

import pygame

from .config import CFG
from .constants import FPS
from .game import Game
from .gpio import init_gpio
from .input_queue import InputQueue
from .services import HttpBackend


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deflect: a timed-reflex survival minigame")
    parser.add_argument("--windowed", action="store_true", help="run in a window even if fullscreen is configured")
    parser.add_argument("--offline", action="store_true", help="use the built-in catalog, skip the backend")
    parser.add_argument("--online", action="store_true", help="use the backend even if config says offline")
    parser.add_argument("--identity", default=CFG.get("identity", ""), help="player identity (wallet address)")
    parser.add_argument("--character", default=CFG.get("character", ""), help="character id to play")
    parser.add_argument("--pvp", action="store_true", help="go straight into a PvP match")
    parser.add_argument("--buy", metavar="ITEM_ID", help="register a paid item with the backend")
    parser.add_argument("--item-type", choices=("powerup", "character"), default="powerup", help="kind of item passed to --buy")
    parser.add_argument("--tx", metavar="TX_REF", help="transaction reference proving payment for --buy")
    args = parser.parse_args(argv)
    if args.buy and not args.tx:
        parser.error("--buy needs --tx")
    return args


# ============================== MAIN LOOP ============================== #
def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, CFG["logging"]["level"], logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    net = CFG["network"]
    offline = args.offline or (net["offline"] and not args.online)
    backend = None if offline else HttpBackend(net["api_base"], timeout=net["timeout"])

    os.environ['SDL_VIDEO_WINDOW_POS'] = "0,0"
    pygame.init()
    fullscreen = bool(CFG["display"]["fullscreen"]) and not args.windowed
    if fullscreen:
        screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
    else:
        screen = pygame.display.set_mode(tuple(CFG["display"]["windowed_size"]), pygame.RESIZABLE)
    pygame.display.set_caption("Deflect")

    game = Game(screen, backend=backend, identity=args.identity, character_id=args.character)
    iq = InputQueue()
    _ = init_gpio(iq)
    if args.buy:
        game.register_purchase(args.buy, args.item_type, args.tx)
    if args.pvp:
        game.start_game(pvp=True)

    while True:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                game.close_pvp()
                pygame.quit(); sys.exit(0)
            game.handle_event(event, iq)
        game.update(iq)
        game.draw()
        game.clock.tick(int(CFG["display"].get("fps", FPS)))

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pygame.quit(); sys.exit(0)
