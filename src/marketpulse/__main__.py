# src/marketpulse/__main__.py
from marketpulse.app import main

if __name__ == "__main__":
    main()
