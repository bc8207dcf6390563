__author__ = 'marko.kirves'

import logging

import tweepy

logger = logging.getLogger(__name__)

TIMELINE_SIZE = 100


def connect(consumer_key, consumer_secret, access_token, access_token_secret):
    """
    :rtype: tweepy.Client
    """
    return tweepy.Client(consumer_key=consumer_key, consumer_secret=consumer_secret,
                         access_token=access_token, access_token_secret=access_token_secret)


def publish_tweet(client, text):
    """
    Tweets the text unless one of the recent tweets of the account already
    has the same text, ignoring case.

    :type client: tweepy.Client
    :return: the id of the new tweet or None if it was skipped
    """
    me = client.get_me(user_auth=True)
    timeline = client.get_users_tweets(me.data.id, max_results=TIMELINE_SIZE, user_auth=True)
    for tweet in timeline.data or []:
        if tweet.text.lower() == text.lower():
            logger.info('Tweet is already present, therefore skipping publishing.')
            return None

    logger.info('Publishing tweet.')
    response = client.create_tweet(text=text, user_auth=True)
    return response.data['id']
