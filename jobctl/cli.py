import json
import click

from .config import DB_FILE, FAILURE_POLICIES
from .db import init_db
from .errors import JobError, JobNotFound
from .models import STATUSES
from .repository import JobStore, get_config, set_config
from .service import build_service
from .status import StatusReader
from .utils import configure_logging, parse_duration


def _duration(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


capacity_option = click.option(
    "--capacity", type=click.IntRange(min=1), default=None,
    help="Dispatch queue capacity (default: config queue_capacity)",
)
work_option = click.option(
    "--work", "work_seconds", default=None, callback=_duration,
    help="Simulated work per job, e.g. 5, 500ms, 2s (default: config work_seconds)",
)
policy_option = click.option(
    "--failure-policy", type=click.Choice(FAILURE_POLICIES), default=None,
    help="What to do when a job's work raises (default: config failure_policy)",
)


@click.group(help="jobctl — job creation and status service")
@click.option("--db", "db_path", envvar="JOBCTL_DB", default=DB_FILE, show_default=True,
              help="SQLite database file")
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def cli(ctx, db_path, log_level):
    configure_logging(log_level)
    # Ensure DB/schema exist before any command runs
    conn = init_db(db_path)
    ctx.obj = conn
    ctx.call_on_close(conn.close)


# ---------- Serve ----------
@cli.command("serve", help="Run the HTTP API with an in-process executor")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8080, type=int, show_default=True)
@capacity_option
@work_option
@policy_option
@click.pass_obj
def serve_cmd(conn, host, port, capacity, work_seconds, failure_policy):
    import uvicorn
    from .api import create_app

    service = build_service(conn, capacity=capacity, work_seconds=work_seconds,
                            failure_policy=failure_policy)
    click.secho(f"Server is listening on {host}:{port}…", fg="cyan")
    uvicorn.run(create_app(service), host=host, port=port, log_config=None)


# ---------- Submit ----------
@cli.command("submit", help="Create jobs in-process and run them")
@click.option("--count", type=click.IntRange(min=1), default=1, show_default=True,
              help="Number of jobs to create")
@click.option("--wait/--no-wait", default=True, show_default=True,
              help="Block until every job has been processed")
@click.option("--timeout", type=float, default=None, help="Give up waiting after N seconds")
@capacity_option
@work_option
@policy_option
@click.pass_obj
def submit_cmd(conn, count, wait, timeout, capacity, work_seconds, failure_policy):
    service = build_service(conn, capacity=capacity, work_seconds=work_seconds,
                            failure_policy=failure_policy)
    service.start()
    try:
        ids = []
        for _ in range(count):
            job = service.create_job()
            ids.append(job.id)
            click.echo(f"Created {job.id} ({job.status})")

        if not wait:
            click.secho("Not waiting; unprocessed jobs stay pending.", fg="yellow")
            return

        if not service.executor.drain(timeout):
            click.secho(f"Timed out after {timeout}s waiting for jobs.", fg="yellow")
        for job_id in ids:
            job = service.status_job(job_id)
            click.echo(f"{job.id} | {job.status:<9} | updated={job.to_dict()['updateAt']}")
    except JobError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)
    finally:
        service.stop()


# ---------- Jobs ----------
@cli.command("status", help="Show one job")
@click.argument("job_id")
@click.pass_obj
def status_cmd(conn, job_id):
    try:
        job = StatusReader(JobStore(conn)).status(job_id)
    except JobNotFound as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)
    except JobError as e:
        click.secho(f"Error: failed to read job: {e}", fg="red")
        raise SystemExit(1)
    click.echo(json.dumps(job.to_dict(), indent=2))


@cli.command("list", help="List stored jobs")
@click.option("--status", type=click.Choice(STATUSES), default=None)
@click.pass_obj
def list_cmd(conn, status):
    try:
        rows = JobStore(conn).list_jobs(status=status)
    except JobError as e:
        click.secho(f"Error: failed to list jobs: {e}", fg="red")
        raise SystemExit(1)

    if not rows:
        click.echo("No jobs.")
        return

    for job in rows:
        d = job.to_dict()
        click.echo(f"{job.id} | {job.status:<9} | created={d['createAt']} | updated={d['updateAt']}")


@cli.command("counts", help="Job counts per status")
@click.pass_obj
def counts_cmd(conn):
    try:
        counts = JobStore(conn).counts()
    except JobError as e:
        click.secho(f"Error: failed to count jobs: {e}", fg="red")
        raise SystemExit(1)
    click.echo(json.dumps(counts, indent=2))


# ---------- Config ----------
@cli.group("config", help="Configuration")
def config_group():
    pass


@config_group.command("get")
@click.pass_obj
def config_get(conn):
    click.echo(json.dumps(get_config(conn), indent=2))


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def config_set_cmd(conn, key, value):
    try:
        set_config(conn, key, value)
        click.secho(f"Config updated: {key}={get_config(conn)[key]}", fg="green")
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red")
        raise SystemExit(1)


def main():
    cli()
