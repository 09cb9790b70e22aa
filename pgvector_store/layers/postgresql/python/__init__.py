# Placeholder file for Lambda layer
