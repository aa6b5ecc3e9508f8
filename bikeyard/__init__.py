import click
from flask import Flask, request
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException
from config import config

db = SQLAlchemy()


def create_app(config_name='default', services=None, **overrides):
    """
    Application factory — creates and configures the Flask app.

    `services` replaces the default client handles (document store,
    identity gateway, blob store); `overrides` are applied on top of the
    selected config class.
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.config.update(overrides)

    from bikeyard.utils.json import ApiJSONProvider
    app.json = ApiJSONProvider(app)

    # ── Logging ───────────────────────────────────────────────────
    from bikeyard.utils.logging import setup_logging, log_request
    setup_logging(app)

    # ── Extensions / client handles ───────────────────────────────
    db.init_app(app)

    from bikeyard.services import init_services
    init_services(app, services)

    # ── Blueprints ────────────────────────────────────────────────
    prefix = app.config['API_PREFIX']

    from bikeyard.main import main as main_blueprint
    app.register_blueprint(main_blueprint)

    from bikeyard.auth import auth as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix=f'{prefix}/auth')

    from bikeyard.inventory import inventory as inventory_blueprint
    app.register_blueprint(inventory_blueprint, url_prefix=f'{prefix}/bikes')

    from bikeyard.sales import sales as sales_blueprint
    app.register_blueprint(sales_blueprint, url_prefix=f'{prefix}/sales')

    from bikeyard.analytics import analytics as analytics_blueprint
    app.register_blueprint(analytics_blueprint, url_prefix=f'{prefix}/analytics')

    from bikeyard.users import users as users_blueprint
    app.register_blueprint(users_blueprint, url_prefix=f'{prefix}/users')

    from bikeyard.uploads import uploads as uploads_blueprint, files as files_blueprint
    app.register_blueprint(uploads_blueprint, url_prefix=prefix)
    app.register_blueprint(files_blueprint, url_prefix='/files')

    if app.config.get('ENABLE_DEBUG_ROUTES'):
        from bikeyard.debug import debug as debug_blueprint
        app.register_blueprint(debug_blueprint, url_prefix=f'{prefix}/debug')

    # ── Error Handlers ────────────────────────────────────────────
    register_error_handlers(app)

    # ── Response hooks ────────────────────────────────────────────
    CORS(
        app,
        origins=app.config['CORS_ORIGINS'],
        supports_credentials=True,
        methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
    )
    app.after_request(apply_security_headers)
    app.after_request(log_request)

    # ── CLI Commands ──────────────────────────────────────────────
    register_commands(app)

    # ── ProxyFix (HTTPS termination at the load balancer) ─────────
    if not app.debug and not app.testing:
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def register_error_handlers(app):
    """Every error leaves the API as a JSON envelope."""
    from bikeyard.utils.errors import ApiError
    from bikeyard.utils.responses import fail
    from bikeyard.services.documents import DocumentNotFound, StoreUnavailable
    from bikeyard.services.blobs import BucketNotFound, ObjectNotFound

    @app.errorhandler(ApiError)
    def api_error(e):
        return fail(e.message, e.status_code, data=e.details)

    @app.errorhandler(StoreUnavailable)
    def store_unavailable(e):
        app.logger.error(f"Document store unavailable: {e}")
        return fail('Database not available. Run `flask init-db` or check DATABASE_URL.', 503)

    @app.errorhandler(DocumentNotFound)
    def document_not_found(e):
        return fail('Document not found', 404)

    @app.errorhandler(BucketNotFound)
    def bucket_not_found(e):
        app.logger.error(f"Blob store unavailable: {e}")
        return fail('Storage service unavailable',
                    503, message='Storage bucket not found. Run `flask init-storage`.')

    @app.errorhandler(ObjectNotFound)
    def object_not_found(e):
        return fail('File not found', 404)

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code == 404:
            return fail('Route not found', 404)
        return fail(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def internal_error(e):
        app.logger.exception(f"Unhandled error on {request.method} {request.path}")
        return fail('Internal server error', 500)


def apply_security_headers(response):
    response.headers.setdefault('X-Content-Type-Options', 'nosniff')
    response.headers.setdefault('X-Frame-Options', 'SAMEORIGIN')
    response.headers.setdefault('Referrer-Policy', 'no-referrer')
    return response


def register_commands(app):
    """Register custom Flask CLI commands."""
    from bikeyard.auth.decorators import ROLES

    @app.cli.command('init-db')
    def init_db():
        """Create the document and identity tables."""
        db.create_all()
        click.echo('✅  Database tables created.')

    @app.cli.command('init-storage')
    def init_storage():
        """Create the upload bucket under STORAGE_ROOT."""
        from bikeyard.services import get_services
        blobs = get_services().blobs
        if blobs.create_bucket():
            click.echo(f'✅  Bucket "{blobs.bucket_name}" created at {blobs.bucket_path}.')
        else:
            click.echo(f'ℹ️   Bucket "{blobs.bucket_name}" already exists.')

    @app.cli.command('create-user')
    @click.option('--email',    prompt='Email',      help='Login email')
    @click.option('--name',     prompt='Full name',  help='Display name')
    @click.option('--role',     type=click.Choice(ROLES), default='worker', show_default=True)
    @click.option('--password', prompt=True, hide_input=True,
                  confirmation_prompt=True, help='Password')
    def create_user(email, name, role, password):
        """Provision an account, its role claim and its profile."""
        from bikeyard.services import get_services
        from bikeyard.services.identity import EmailAlreadyExists
        from bikeyard.users.provisioning import provision_user

        try:
            profile = provision_user(get_services(), email, password, name, role)
        except EmailAlreadyExists:
            click.echo(f'⚠️  User "{email}" already exists.')
            return
        click.echo(f'✅  {role.capitalize()} "{profile.get("email")}" created (uid {profile.id}).')

    @app.cli.command('seed-users')
    @click.option('--admin-email',     default='admin@test.com')
    @click.option('--admin-password',  default='Admin123!')
    @click.option('--worker-email',    default='worker@test.com')
    @click.option('--worker-password', default='Worker123!')
    def seed_users(admin_email, admin_password, worker_email, worker_password):
        """Create an admin and a worker account, or re-apply their roles."""
        from bikeyard.services import get_services
        from bikeyard.services.identity import EmailAlreadyExists
        from bikeyard.users.provisioning import provision_user

        services = get_services()
        db.create_all()
        accounts = [
            (admin_email, admin_password, 'Admin User', 'admin'),
            (worker_email, worker_password, 'Worker User', 'worker'),
        ]
        for email, password, name, role in accounts:
            try:
                provision_user(services, email, password, name, role)
                click.echo(f'✅  {role} user created: {email}')
            except EmailAlreadyExists:
                record = services.identity.get_user_by_email(email)
                services.identity.set_custom_user_claims(record.uid, {'role': role})
                click.echo(f'ℹ️   {email} already exists; role reset to {role}.')

    @app.cli.command('set-role')
    @click.argument('email')
    @click.argument('role', type=click.Choice(ROLES))
    def set_role(email, role):
        """Set the role claim for an existing account."""
        from bikeyard.services import get_services
        from bikeyard.services.identity import UserNotFound

        identity = get_services().identity
        try:
            record = identity.get_user_by_email(email)
        except UserNotFound:
            click.echo(f'⚠️  No account for "{email}".')
            return
        identity.set_custom_user_claims(record.uid, {**record.custom_claims, 'role': role})
        click.echo(f'✅  Role {role} set for {record.email}.')

    return app
