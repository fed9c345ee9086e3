import os

from dotenv import load_dotenv

load_dotenv()

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

# Database: "sqlite://" keeps everything in memory,
# "sqlite:///./posts.db" stores it in a file
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")
SQL_ECHO = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Size of the /posts/top ranking when no usable limit is given
DEFAULT_TOP_LIMIT = 5
