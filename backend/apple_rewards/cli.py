# Overview: Flask CLI command groups for bootstrap, roster management, and maintenance.

# backend/apple_rewards/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions --older-than-days 30
#   Delete expired or revoked login sessions.
#
# Staff:
# - python -m flask users create --name "Ada" --email ada@example.com --role admin --barcode 2001 --password "Password123!"
#   Create an admin or assistant (prompts if options are omitted).
# - python -m flask users list [--role assistant]
#   List staff with balances and session counts.
#
# Students:
# - python -m flask students create --name "Sam" --barcode 1001
# - python -m flask students list

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Student, USER_ROLES
from .services.auth_service import create_user, create_student, PasswordValidationError
from .services import session_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@system_group.command('cleanup-sessions')
@click.option('--older-than-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions(older_than_days):
    """Delete expired or revoked login sessions."""
    deleted = session_service.cleanup_expired_sessions(older_than_days)
    click.echo(f"PASS Deleted {deleted} session(s).")


@click.group('users')
def users_group():
    """Staff (admin/assistant) management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name (also the dashboard key)')
@click.option('--email', prompt=True, help='Login email')
@click.option('--role', prompt=True, type=click.Choice(USER_ROLES), help='Staff role')
@click.option('--barcode', prompt=True, help='Barcode (2... for admins, 3... for assistants)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--picture', 'profile_picture_url', default=None, help='Profile picture URL')
@with_appcontext
def create_user_cli(name, email, role, barcode, password, profile_picture_url):
    """Create an admin or assistant account."""
    try:
        user = create_user(
            name=name,
            email=email,
            password=password,
            role=role,
            barcode=barcode,
            profile_picture_url=profile_picture_url,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        raise SystemExit(1)

    click.echo(f"PASS Created {role}: {name} ({email}) barcode={barcode} id={user.id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@click.option('--role', type=click.Choice(USER_ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List staff with balances and session counts."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)
    users = query.order_by(User.role, User.name).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<28} {'Role':<10} {'Barcode':<10} {'Apples':>7} {'Sess':>5}")
    click.echo("="*90)
    for user in users:
        click.echo(
            f"{user.id:<5} {user.name:<20} {user.email:<28} {user.role:<10} "
            f"{user.barcode:<10} {user.apples:>7} {user.sessions_attended:>5}"
        )
    click.echo("="*90 + "\n")


@click.group('students')
def students_group():
    """Student roster commands."""


@students_group.command('create')
@click.option('--name', prompt=True, help='Student name')
@click.option('--barcode', prompt=True, help='Barcode (1...)')
@with_appcontext
def create_student_cli(name, barcode):
    """Register a student."""
    try:
        student = create_student(name=name, barcode=barcode)
    except ValueError as e:
        click.echo(f"FAIL Failed to create student: {str(e)}")
        raise SystemExit(1)
    click.echo(f"PASS Created student: {name} barcode={barcode} id={student.id}")


@students_group.command('list')
@with_appcontext
def list_students():
    """List students, richest first."""
    students = db.session.query(Student).order_by(Student.apples.desc(), Student.name).all()
    if not students:
        click.echo("No students found.")
        return

    click.echo("\n" + "="*50)
    click.echo(f"{'ID':<5} {'Name':<24} {'Barcode':<10} {'Apples':>7}")
    click.echo("="*50)
    for student in students:
        click.echo(f"{student.id:<5} {student.name:<24} {student.barcode:<10} {student.apples:>7}")
    click.echo("="*50 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(students_group)
