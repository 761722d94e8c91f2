import logging
from datetime import date, datetime, timedelta, timezone

import dash
from dash import dcc, html, Input, Output, State
import plotly.graph_objs as go
import pandas as pd
import requests

from sunglobe_core import GeodeticPoint, terminator, unit_to_geodetic, normalize_longitude, DegeneratePositionError
from sunglobe_core import config

API_ROOT = config.API_ROOT
logger = logging.getLogger(__name__)

app = dash.Dash(__name__, suppress_callback_exceptions=True)
app.title = "SunGlobe"

# --- LAYOUT ---
app.layout = html.Div([
    html.H1("SunGlobe", style={'textAlign': 'center'}),

    html.Div([
        # --- SIDEBAR ---
        html.Div([
            html.H3("Time"),
            dcc.Checklist(id='live-mode', options=[{'label': 'Follow latest data', 'value': 'on'}], value=['on']),
            html.Label("Date (UTC)"),
            dcc.DatePickerSingle(id='date-picker', date=date.today(), max_date_allowed=date.today()),
            html.Label("Hour (UTC)"),
            dcc.Slider(id='hour-slider', min=0, max=23.5, value=12, step=0.5, updatemode='mouseup',
                       marks={0: '00', 6: '06', 12: '12', 18: '18', 23.5: '23:30'}),
            dcc.Checklist(id='animate', options=[{'label': 'Animate rotation', 'value': 'on'}],
                          value=['on'] if config.ANIMATE else []),
            html.Div(id='selection-status', style={'marginTop': '10px'}),

            html.Hr(),
            html.Button('Refresh now', id='refresh-btn', n_clicks=0),
            html.Div(id='refresh-status', style={'marginTop': '10px'}),
        ], style={'width': '20%', 'display': 'inline-block', 'verticalAlign': 'top', 'padding': '20px'}),

        # --- MAIN CONTENT ---
        html.Div([
            html.Div([
                html.H3("Globe"),
                dcc.Graph(id='globe-graph', style={'height': '600px'}),
                html.Div(id='globe-status'),
            ], style={'width': '55%', 'display': 'inline-block', 'verticalAlign': 'top', 'padding': '20px'}),

            html.Div([
                html.H3("EPIC Image"),
                html.Img(id='epic-image', style={'width': '100%'}),
                html.H3("Ground Stations"),
                html.Div(id='station-table'),
            ], style={'width': '35%', 'display': 'inline-block', 'verticalAlign': 'top', 'padding': '20px'}),
        ], style={'width': '80%', 'display': 'inline-block'}),
    ]),

    dcc.Interval(id='state-interval', interval=250, n_intervals=0),
    dcc.Store(id='last-state'),
], style={'fontFamily': 'Arial, sans-serif'})


def satellite_subpoint(snapshot):
    sat = snapshot.get('satellite')
    # only Earth-fixed positions map onto the globe; GSE axes follow the sun
    if not sat or (sat.get('frame') or '').lower() != 'geo':
        return None
    try:
        return unit_to_geodetic((sat['x'], sat['y'], sat['z']))
    except DegeneratePositionError:
        return None


def build_globe_figure(state):
    """Orthographic globe for a /state payload."""
    fig = go.Figure()
    snapshot = state.get('snapshot') if state else None
    if not snapshot:
        fig.update_layout(title="Waiting for the first refresh")
        return fig

    subsolar = snapshot['subsolar']
    lats, lons = terminator(GeodeticPoint(subsolar['lat'], subsolar['lon']))
    fig.add_trace(go.Scattergeo(
        lat=lats, lon=lons, mode='lines',
        line=dict(width=2, color='#2d3748'),
        name='Terminator', hoverinfo='skip',
    ))
    fig.add_trace(go.Scattergeo(
        lat=[subsolar['lat']], lon=[subsolar['lon']], mode='markers',
        marker=dict(size=14, color='gold', symbol='star'),
        name='Subsolar point',
        hovertemplate='Subsolar<br>lat: %{lat:.2f}<br>lon: %{lon:.2f}<extra></extra>',
    ))

    stations = pd.DataFrame(snapshot['stations'])
    if not stations.empty:
        fig.add_trace(go.Scattergeo(
            lat=stations['lat'], lon=stations['lon'], mode='markers+text',
            text=stations['name'], textposition='top center',
            marker=dict(
                size=[14 if c else 9 for c in stations['in_cone']],
                color=stations['color'],
                symbol=['circle' if c else 'circle-open' for c in stations['in_cone']],
                line=dict(width=2, color=stations['color']),
            ),
            name='Ground stations',
            customdata=list(zip(stations['cone_angle'], stations['in_cone'])),
            hovertemplate='%{text}<br>cone: %{customdata[0]}°<br>in cone: %{customdata[1]}<extra></extra>',
        ))

    sub = satellite_subpoint(snapshot)
    if sub is not None:
        fig.add_trace(go.Scattergeo(
            lat=[sub.lat_deg], lon=[sub.lon_deg], mode='markers',
            marker=dict(size=12, color='red', symbol='diamond'),
            name=snapshot['satellite'].get('satellite') or 'Satellite',
        ))

    rotation = state.get('projection')
    if rotation is None:
        lam, phi, gamma = state['rotation']
        rotation = dict(lon=normalize_longitude(-lam), lat=-phi, roll=gamma)
    fig.update_geos(
        projection_type='orthographic',
        projection_rotation=rotation,
        showocean=True, oceancolor='#bee3f8',
        showland=True, landcolor='#f0fff4',
        showcountries=True,
    )
    fig.update_layout(
        title=f"Sunlit Earth at {snapshot['timestamp']}",
        margin=dict(l=0, r=0, t=40, b=0),
        showlegend=True,
        height=600,
    )
    return fig


def station_table(state):
    snapshot = state.get('snapshot') if state else None
    if not snapshot or not snapshot['stations']:
        return html.P("No stations")
    df = pd.DataFrame(snapshot['stations'])[['name', 'lat', 'lon', 'cone_angle', 'visible', 'in_cone']]
    return html.Table([
        html.Thead(html.Tr([html.Th(col) for col in df.columns])),
        html.Tbody([
            html.Tr([html.Td(str(df.iloc[i][col])) for col in df.columns])
            for i in range(len(df))
        ])
    ], style={'fontSize': '12px'})


def selected_timestamp(live, day, hour):
    if 'on' in (live or []) or not day:
        return None
    ts = datetime.fromisoformat(day[:10]).replace(tzinfo=timezone.utc)
    return ts + timedelta(hours=hour or 0)


# --- CALLBACKS ---

@app.callback(
    Output('selection-status', 'children'),
    Input('live-mode', 'value'),
    Input('date-picker', 'date'),
    Input('hour-slider', 'value'),
    State('animate', 'value'),
    prevent_initial_call=True
)
def select_time(live, day, hour, animate):
    ts = selected_timestamp(live, day, hour)
    try:
        requests.post(f"{API_ROOT}/time", json={
            "timestamp": ts.isoformat() if ts else None,
            "animate": 'on' in (animate or []),
        }, timeout=5).raise_for_status()
    except requests.RequestException as e:
        logger.warning("Time selection failed: %s", e)
        return html.Div("✗ Backend unreachable", style={'color': 'red'})
    label = ts.strftime("%Y-%m-%d %H:%M UTC") if ts else "latest"
    return html.Div(f"✓ Showing {label}", style={'color': 'green'})


@app.callback(
    Output('refresh-status', 'children'),
    Input('refresh-btn', 'n_clicks'),
)
def refresh(n_clicks):
    if n_clicks == 0:
        return ""
    try:
        status = requests.post(f"{API_ROOT}/refresh", timeout=30).json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Refresh failed: %s", e)
        return html.Div("✗ Backend unreachable", style={'color': 'red'})
    if status.get('error'):
        return html.Div(f"✗ {status['error']}", style={'color': 'red'})
    return html.Div("✓ Refreshed", style={'color': 'green'})


@app.callback(
    [Output('globe-graph', 'figure'),
     Output('station-table', 'children'),
     Output('epic-image', 'src'),
     Output('globe-status', 'children'),
     Output('last-state', 'data')],
    Input('state-interval', 'n_intervals'),
    State('last-state', 'data'),
)
def update_globe(n, last_state):
    try:
        state = requests.get(f"{API_ROOT}/state", timeout=3).json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("State poll failed: %s", e)
        # keep whatever was drawn last
        return (dash.no_update, dash.no_update, dash.no_update,
                html.P("Backend service connection lost.", style={'color': 'orange'}), last_state)

    if state == last_state:
        return dash.no_update, dash.no_update, dash.no_update, dash.no_update, dash.no_update

    messages = []
    if state.get('error'):
        messages.append(html.P(f"Data error: {state['error']}", style={'color': 'red'}))
    if state.get('notice'):
        messages.append(html.P(state['notice'], style={'color': 'orange'}))
    reported = state.get('reported_subsolar')
    if reported:
        messages.append(html.P(f"EPIC image centre: {reported['lat']:.2f}, {reported['lon']:.2f}"))
    messages.append(html.P(f"Rotation: {state.get('state')}  |  last refresh: {state.get('last_refresh')}"))

    snapshot = state.get('snapshot') or {}
    return build_globe_figure(state), station_table(state), snapshot.get('image'), html.Div(messages), state


if __name__ == '__main__':
    config.configure_logging()
    app.run(debug=True, port=8050)
