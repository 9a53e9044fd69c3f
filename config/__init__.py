# Author: Bradley R. Kinnard
# run configuration schemas and defaults
