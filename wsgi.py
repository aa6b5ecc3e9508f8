import os

from bikeyard import create_app, db

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# Fresh databases get their tables on boot
with app.app_context():
    try:
        db.create_all()
    except Exception as e:
        app.logger.error(f"Startup table creation failed: {e}")

if __name__ == "__main__":
    app.run(host='0.0.0.0', port=app.config['PORT'])
