__author__ = 'marko.kirves'

from fabric import task

from releasetool.helpers import load_environment, open_twitter
from releasetool.twitter import publish_tweet


@task(help={
    'environment': 'Environment name in the configuration file',
    'text': 'Text of the tweet, defaults to twitter.text of the configuration',
})
def announce(c, environment, text=None):
    """Announce the release on Twitter"""
    config, variables = load_environment(environment)
    text = variables.replace(text or (config.get('twitter') or {}).get('text'))
    if not text:
        raise Exception('Tweet text not defined')

    publish_tweet(open_twitter(config, variables), text)
