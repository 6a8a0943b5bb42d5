from .jdk_class_reader_cli import main

main()
