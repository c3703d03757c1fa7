#!/usr/bin/env python3
"""
Main entry point for running the Courtside application
"""

import os

# Set environment before settings are loaded
os.environ.setdefault('COURTSIDE_ENV', 'development')

from courtside.main import create_app  # noqa: E402

if __name__ == '__main__':
    # Create and run app
    app = create_app()

    print("Starting Courtside...")
    print("Access the application at: http://localhost:5001")
    print("API root at: http://localhost:5001/api")
    print("\nPress CTRL+C to stop the server")

    app.run(
        host='0.0.0.0',
        port=5001,
        debug=True
    )
