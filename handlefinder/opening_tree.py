#!/usr/bin/env python3
"""
Opening Tree Aggregation

Folds a batch of games into one move tree. Each node is the position reached
by a move path and counts how many of the folded games passed through it.

Usage:
  python opening_tree.py --pgn games.pgn --path e4 c5 --depth 12
"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

import chess

sys.path.insert(0, str(Path(__file__).resolve().parent))
from game_sources import read_pgn_games
from models import GameRecord, InvalidInputError, MoveTreeNode


def parse_move(board: chess.Board, notation: str) -> chess.Move:
    """Parse SAN, falling back to UCI. Raises ValueError if illegal, unparseable or a null move."""
    try:
        move = board.parse_san(notation)
    except ValueError:
        move = chess.Move.from_uci(notation)
    # parse_san accepts "--" and "0000" as null moves; a pass is never a legal ply
    if not move or not board.is_legal(move):
        raise chess.IllegalMoveError(f"illegal move: {notation} in {board.fen()}")
    return move


def _game_moves(game) -> Sequence[str] | None:
    moves = game.get("moves") if isinstance(game, dict) else getattr(game, "moves", None)
    if moves is None:
        return None
    if isinstance(moves, (str, bytes)) or not isinstance(moves, Sequence):
        raise InvalidInputError(f"Game moves must be a sequence, got {type(moves).__name__}")
    return moves


def fold(games: Sequence[GameRecord], max_plies: int | None = None) -> MoveTreeNode:
    """
    Build a fresh tree from games. A game stops contributing at its first
    illegal move, and only games that add at least one ply count toward the
    root total, so first-move shares always sum to the whole.
    """
    root = MoveTreeNode(move=None, play_count=0, position_key=chess.Board().fen())
    for game in games:
        moves = _game_moves(game)
        if not moves:
            continue

        board = chess.Board()
        node = root
        for ply, notation in enumerate(moves):
            if max_plies is not None and ply >= max_plies:
                break
            try:
                move = parse_move(board, str(notation).strip())
            except ValueError:
                break
            san = board.san(move)
            board.push(move)
            if node is root:
                root.play_count += 1

            child = node.children.get(san)
            if child is None:
                child = MoveTreeNode(move=san, play_count=0, position_key=board.fen())
                node.children[san] = child
            child.play_count += 1
            node = child
    return root


def node_at(root: MoveTreeNode, path: Sequence[str]) -> MoveTreeNode | None:
    node = root
    for san in path:
        node = node.children.get(san)
        if node is None:
            return None
    return node


def _percent(part: int, whole: int) -> int:
    if not whole:
        return 0
    return int(part / whole * 100 + 0.5)


def frequency_of(root: MoveTreeNode, path: Sequence[str]) -> int:
    """Share (0-100) of games at the parent position that continued with the last move of path."""
    if not path:
        return 0
    parent = node_at(root, path[:-1])
    if parent is None:
        return 0
    node = parent.children.get(path[-1])
    if node is None:
        return 0
    return _percent(node.play_count, parent.play_count)


def continuations(node: MoveTreeNode) -> list[tuple[str, int, int]]:
    """(move, play count, percentage) for each child, most played first."""
    ordered = sorted(node.children.values(), key=lambda c: -c.play_count)
    return [(c.move, c.play_count, _percent(c.play_count, node.play_count)) for c in ordered]


def top_continuation(root: MoveTreeNode, path: Sequence[str]) -> tuple[str, int] | None:
    node = node_at(root, path)
    if node is None or not node.children:
        return None
    move, _, pct = continuations(node)[0]
    return move, pct


class TreeCursor:
    """
    Follows a board replay through the tree.

    Moves are recorded as they are played; the tree walk happens on demand and
    stops at the first move the folded games never reached.
    """

    def __init__(self, root: MoveTreeNode):
        self.root = root
        self.board = chess.Board()
        self.history: list[str] = []
        self._node: MoveTreeNode = root
        self._depth = 0

    def push(self, notation: str) -> str:
        """Play a move on the replay board. Returns its SAN; raises ValueError if illegal."""
        move = parse_move(self.board, notation)
        san = self.board.san(move)
        self.board.push(move)
        self.history.append(san)
        return san

    def pop(self) -> str | None:
        if not self.history:
            return None
        self.board.pop()
        san = self.history.pop()
        if self._depth > len(self.history):
            self._node, self._depth = self.root, 0
        return san

    def reset(self) -> None:
        self.board.reset()
        self.history.clear()
        self._node, self._depth = self.root, 0

    def _walk(self) -> MoveTreeNode:
        while self._depth < len(self.history):
            child = self._node.children.get(self.history[self._depth])
            if child is None:
                break
            self._node = child
            self._depth += 1
        return self._node

    @property
    def node(self) -> MoveTreeNode:
        """Deepest tree node along the replayed moves."""
        return self._walk()

    @property
    def in_tree(self) -> bool:
        self._walk()
        return self._depth == len(self.history)

    def frequency(self) -> int:
        """How often the last replayed move was chosen at its position."""
        if not self.history or not self.in_tree:
            return 0
        return frequency_of(self.root, self.history)

    def position_share(self) -> int:
        """Share of all folded games that reached the current position."""
        if not self.in_tree:
            return 0
        return _percent(self.node.play_count, self.root.play_count)

    def top_continuation(self) -> tuple[str, int] | None:
        if not self.in_tree:
            return None
        return top_continuation(self.root, self.history)

    def continuations(self) -> list[tuple[str, int, int]]:
        if not self.in_tree:
            return []
        return continuations(self.node)


def print_tree(node: MoveTreeNode, depth: int, indent: int = 0) -> None:
    if depth <= 0:
        return
    for move, count, pct in continuations(node):
        print(f"{'  ' * indent}{move:8s} {count:5d} games  {pct:3d}%")
        print_tree(node.children[move], depth - 1, indent + 1)


def main():
    parser = argparse.ArgumentParser(description="Aggregate PGN games into an opening tree")
    parser.add_argument("--pgn", nargs="+", required=True, help="PGN file paths")
    parser.add_argument("--player", default=None, help="Only games played by this name")
    parser.add_argument("--path", nargs="*", default=[], help="Moves to walk before printing")
    parser.add_argument("--depth", type=int, default=3, help="Plies to print below the path")
    parser.add_argument("--max-plies", type=int, default=None)
    args = parser.parse_args()

    games = []
    for pgn_path in args.pgn:
        games += read_pgn_games(Path(pgn_path), player=args.player)

    root = fold(games, max_plies=args.max_plies)
    print(f"Folded {root.play_count} games.")
    node = node_at(root, args.path)
    if node is None:
        print(f"Path not in tree: {' '.join(args.path)}", file=sys.stderr)
        sys.exit(1)
    if args.path:
        print(f"{' '.join(args.path)}: {node.play_count} games, {frequency_of(root, args.path)}% at this move")
    print_tree(node, args.depth)


if __name__ == "__main__":
    main()
