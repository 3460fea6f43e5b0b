"""Starting point for blind-chessboard."""
from blind_chessboard.board_loop import start_program

if __name__ == "__main__":
    start_program()
