# cli.py
import logging

import click

from fragments_api.config.settings import get_settings

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the Fragments API"""
    pass


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  Storage Backend: {settings.storage_backend}")
    click.echo(f"  AWS Region: {settings.aws_region}")
    click.echo(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    click.echo(f"  S3 Bucket: {settings.s3_bucket_name}")
    click.echo(f"  Max Fragment Size: {settings.max_fragment_size_bytes} bytes")
    click.echo(f"  Basic Auth Users: {len(settings.basic_auth_users)}")
    click.echo(f"  Log Level: {settings.log_level}")


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", default=8080, show_default=True, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the API with uvicorn"""
    import uvicorn

    settings = get_settings()
    click.echo(f"Starting Fragments API on {host}:{port} ({settings.storage_backend} backend)")
    uvicorn.run(
        "fragments_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    cli()
