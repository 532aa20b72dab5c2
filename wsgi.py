import os
from railqual import create_app

app = create_app(os.getenv('FLASK_ENV', 'production'))
