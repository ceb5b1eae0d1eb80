from patchline.cli import cli

cli()
