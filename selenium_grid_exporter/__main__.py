from .cli import main

main(prog_name="selenium_grid_exporter")
