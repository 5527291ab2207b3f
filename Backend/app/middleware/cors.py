# Browser callers (the app's web view and the hosted checkout redirect) read
# these endpoints cross-origin.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
CALLBACK_CORS_HEADERS = {**CORS_HEADERS, "Access-Control-Allow-Methods": "GET, OPTIONS"}
