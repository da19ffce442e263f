# Gunicorn configuration
# Practice sessions live in-process on one event loop, so run a single
# worker and scale with threads.
bind = "127.0.0.1:8000"
workers = 1
worker_class = "gthread"
threads = 8
timeout = 180
keepalive = 5
errorlog = "/var/log/codepractice/gunicorn-error.log"
accesslog = "/var/log/codepractice/gunicorn-access.log"
loglevel = "info"
