#!/usr/bin/env python3
"""
Game Thread Bot - Entry Point

Discord bot that opens a game-day discussion thread for each scheduled game.
The actual implementation is in the gamethreadbot package.
"""

if __name__ == "__main__":
    from gamethreadbot import main
    main()
