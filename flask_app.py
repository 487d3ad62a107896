from flask import Flask, redirect, render_template, request, url_for, jsonify
from dotenv import load_dotenv
import os
import threading
from blackjack_engine import DeckExhausted, Game, UnknownPlayer
import logging

# Load .env variables
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

PLAYER_COUNT = int(os.getenv("BLACKJACK_PLAYER_COUNT", "1"))
DECK_COUNT = int(os.getenv("BLACKJACK_DECK_COUNT", "0"))  # 0 or less: magic deck

# Init flask app
app = Flask(__name__)
app.config["DEBUG"] = os.getenv("FLASK_DEBUG") == "1"

# One game per process; every request holds the lock for its whole command
game = None
table_lock = threading.Lock()


def current_game():
    """Return the table's game, dealing the first round on first use.

    Callers must hold table_lock.
    """
    global game
    if game is None:
        logger.info("Starting game: players=%s decks=%s", PLAYER_COUNT, DECK_COUNT)
        game = Game(PLAYER_COUNT, DECK_COUNT)
        game.new_game()
    return game


def _render_hand(holder):
    if not holder.visible:
        return {
            "name": holder.name,
            "cards": ["?" for _ in holder.hand],
            "score": "?",
        }
    return {
        "name": holder.name,
        "cards": [card.long_name() for card in holder.hand],
        "score": holder.score(),
    }


def _render_table(g):
    players = []
    for player in g.players:
        view = _render_hand(player)
        view.update({
            "id": player.id,
            "standing": player in g.standing,
            "busted": player in g.busted,
            "winner": player in g.winners,
            "win_count": player.win_count,
        })
        players.append(view)
    return {
        "phase": g.phase.value,
        "all_standing": g.all_standing(),
        "dealer": _render_hand(g.dealer),
        "players": players,
    }


def _requested_player(g):
    raw_id = request.form.get("player_id")
    if raw_id is None:
        return None, (jsonify({"error": "player_id is required"}), 400)
    try:
        player_id = int(raw_id)
    except ValueError:
        return None, (jsonify({"error": "player_id must be an integer"}), 400)
    try:
        return g.player(player_id), None
    except UnknownPlayer:
        logger.warning("Command for unknown player_id=%s", player_id)
        return None, (jsonify({"error": "Player not found"}), 404)


@app.errorhandler(DeckExhausted)
def deck_exhausted(error):
    logger.exception("Deck ran out mid-round: %s", error)
    return jsonify({"error": "Deck exhausted"}), 409


# App routes
@app.route("/", methods=["GET"])
def index():
    """Redirect to blackjack"""
    return redirect(url_for("blackjack"))


# Blackjack routes
@app.route("/blackjack", methods=["GET"])
def blackjack():
    """Show the table"""
    with table_lock:
        table = _render_table(current_game())
    return render_template("blackjack.html", table=table)


@app.route("/blackjack/state", methods=["GET"])
def blackjack_state():
    with table_lock:
        return jsonify(_render_table(current_game()))


@app.post("/blackjack/new")
def blackjack_new():
    """Deal a new round once every player is standing"""
    with table_lock:
        g = current_game()
        if not g.all_standing():
            return jsonify({"error": "Round still in progress"}), 409
        g.new_game()
        return jsonify(_render_table(g))


@app.post("/blackjack/hit")
def blackjack_hit():
    """Player hits (takes another card)"""
    with table_lock:
        g = current_game()
        player, error = _requested_player(g)
        if error:
            return error
        g.hit(player)
        return jsonify(_render_table(g))


@app.post("/blackjack/stand")
def blackjack_stand():
    """Player stands (dealer plays once everyone stands)"""
    with table_lock:
        g = current_game()
        player, error = _requested_player(g)
        if error:
            return error
        g.stand(player)
        return jsonify(_render_table(g))


if __name__ == "__main__":
    app.run()
