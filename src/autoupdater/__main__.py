from autoupdater.cli import main

main(prog_name="autoupdater")
