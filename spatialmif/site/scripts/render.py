"""Execute the tutorial chapters and write the static site."""
import argparse

from spatialmif.site.render import render_site
from spatialmif.site.render import default_chapters_directory
from spatialmif.standalone_utilities.configuration_settings import TutorialSettings
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger('spatialmif site render')


def main():
    parser = argparse.ArgumentParser(
        prog='spatialmif site render',
        description='Execute the tutorial chapters and write one HTML page per chapter plus an index.',
    )
    parser.add_argument('--chapters-directory', dest='chapters_directory', type=str, required=False,
                        help='Directory of percent-format chapter scripts. Defaults to the packaged chapters.')
    parser.add_argument('--output-directory', dest='output_directory', type=str, required=False)
    parser.add_argument('--title', dest='title', type=str, required=False)
    parser.add_argument('--config-file', dest='config_file', type=str, required=False)
    args = parser.parse_args()

    settings = TutorialSettings.from_file(args.config_file)
    chapters_directory = default_chapters_directory() if args.chapters_directory is None else args.chapters_directory
    output_directory = settings.output_directory if args.output_directory is None else args.output_directory
    title = settings.title if args.title is None else args.title
    written = render_site(chapters_directory, output_directory, title)
    logger.info('Site index: %s', written[-1])


if __name__ == '__main__':
    main()
